"""Extraction of the external images a Dockerfile depends on."""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from pathlib import Path

_DIRECTIVE_RE = re.compile(r"#\s*([a-zA-Z][a-zA-Z0-9]*)\s*=\s*(.+?)\s*")
_STAGE_NAME_RE = re.compile(r"[a-z][a-z0-9-_.]*")

_KNOWN_COMMANDS = frozenset(
    {
        "add", "arg", "cmd", "copy", "entrypoint", "env", "expose", "from",
        "healthcheck", "label", "maintainer", "onbuild", "run", "shell",
        "stopsignal", "user", "volume", "workdir",
    }
)
_FLAGS = {
    "from": frozenset({"platform"}),
    "copy": frozenset({"from", "chown", "chmod", "link", "parents", "exclude"}),
    "add": frozenset({"chown", "chmod", "link", "keep-git-dir", "checksum", "exclude"}),
    "run": frozenset({"mount", "network", "security"}),
    "healthcheck": frozenset(
        {"interval", "timeout", "start-period", "start-interval", "retries"}
    ),
}
_LIST_FLAGS = frozenset({"mount", "exclude"})
_BOOL_FLAGS = frozenset({"link", "parents", "keep-git-dir"})

_MOUNT_KEYS = frozenset(
    {
        "type", "from", "source", "src", "target", "dst", "destination",
        "readonly", "ro", "readwrite", "rw", "id", "sharing", "required",
        "mode", "uid", "gid", "size", "env",
    }
)
_MOUNT_TYPES = frozenset({"bind", "cache", "tmpfs", "secret", "ssh"})
MOUNT_TYPE_BIND = "bind"


class DockerfileError(ValueError):
    """Raised when a Dockerfile cannot be read, parsed or evaluated."""


@dataclass(frozen=True)
class FromImage:
    """An external image referenced by a Dockerfile instruction."""

    name: str
    code: str
    comments: list[str] = field(default_factory=list)
    line: int = 0


@dataclass(frozen=True)
class _Node:
    command: str
    original: str
    rest: str
    comments: tuple[str, ...]
    start_line: int


@dataclass(frozen=True)
class _Mount:
    type: str
    source_from: str


class _Scan:
    """Shell-like expansion of a single word against build arguments."""

    def __init__(self, text: str, env: dict[str, str], escape: str) -> None:
        self.text = text
        self.env = env
        self.escape = escape
        self.pos = 0

    def _peek(self) -> str:
        return self.text[self.pos : self.pos + 1]

    def _next(self) -> str:
        ch = self._peek()
        self.pos += len(ch)
        return ch

    def word(self) -> str:
        return self._until("")

    def _until(self, stop: str) -> str:
        out: list[str] = []
        while True:
            ch = self._peek()
            if not ch:
                if stop:
                    raise DockerfileError(
                        f"unexpected end of statement while looking for matching {stop}"
                    )
                return "".join(out)
            self.pos += 1
            if stop and ch == stop:
                return "".join(out)
            if ch == "'":
                out.append(self._single())
            elif ch == '"':
                out.append(self._double())
            elif ch == "$":
                out.append(self._dollar())
            elif ch == self.escape:
                out.append(self._next())
            else:
                out.append(ch)

    def _single(self) -> str:
        end = self.text.find("'", self.pos)
        if end < 0:
            raise DockerfileError(
                "unexpected end of statement while looking for matching single-quote"
            )
        value = self.text[self.pos : end]
        self.pos = end + 1
        return value

    def _double(self) -> str:
        out: list[str] = []
        while True:
            ch = self._next()
            if not ch:
                raise DockerfileError(
                    "unexpected end of statement while looking for matching double-quote"
                )
            if ch == '"':
                return "".join(out)
            if ch == "$":
                out.append(self._dollar())
            elif ch == self.escape:
                nxt = self._next()
                out.append(nxt if nxt in ('"', "$", self.escape) else ch + nxt)
            else:
                out.append(ch)

    def _name(self) -> str:
        start = self.pos
        while True:
            ch = self._peek()
            if ch and ((ch.isascii() and ch.isalnum()) or ch == "_"):
                self.pos += 1
            else:
                break
        return self.text[start : self.pos]

    def _dollar(self) -> str:
        if self._peek() != "{":
            name = self._name()
            if not name:
                return "$"
            return self.env.get(name, "")
        self.pos += 1
        ch = self._peek()
        if not ch:
            raise DockerfileError("syntax error: missing '}'")
        if ch in "{}:":
            raise DockerfileError("syntax error: bad substitution")
        name = self._name()
        value = self.env.get(name)
        ch = self._next()
        if not ch:
            raise DockerfileError("syntax error: missing '}'")
        if ch == "}":
            return value or ""
        colon = ch == ":"
        if colon:
            ch = self._next()
        if ch not in ("-", "+", "?"):
            raise DockerfileError(f"unsupported modifier ({ch}) in substitution")
        word = self._until("}")
        empty = value is None or (colon and value == "")
        if ch == "-":
            return word if empty else value or ""
        if ch == "+":
            return "" if empty else word
        if empty:
            raise DockerfileError(f"{name}: {word or 'is not allowed to be unset'}")
        return value or ""


def _process_word(word: str, env: dict[str, str], escape: str) -> str:
    return _Scan(word, env, escape).word()


def _trim_continuation(line: str, escape: str) -> tuple[str, bool]:
    match = re.search(rf"{re.escape(escape)}[ \t]*$", line)
    if match is None:
        return line, False
    return line[: match.start()], True


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def _parse_nodes(text: str) -> tuple[list[_Node], str]:
    lines = text.splitlines()
    if lines and lines[0].startswith("\ufeff"):
        lines[0] = lines[0][1:]
    escape = "\\"
    escape_seen = False
    directives_done = False
    comments: list[str] = []
    nodes: list[_Node] = []
    index = 0
    while index < len(lines):
        raw = lines[index]
        index += 1
        start_line = index
        if not directives_done:
            match = _DIRECTIVE_RE.fullmatch(raw.strip())
            if match is None:
                directives_done = True
            elif match.group(1).lower() == "escape":
                if escape_seen:
                    raise DockerfileError("only one escape parser directive can be used")
                token = match.group(2)
                if token not in ("`", "\\"):
                    raise DockerfileError(
                        f"invalid escape token '{token}' does not match ` or \\"
                    )
                escape = token
                escape_seen = True
        stripped = raw.lstrip()
        if stripped.startswith("#"):
            comment = stripped[1:].strip()
            if comment:
                comments.append(comment)
            else:
                comments = []
            continue
        if not stripped.strip():
            continue
        segment, continued = _trim_continuation(stripped, escape)
        parts = [segment]
        while continued and index < len(lines):
            nxt = lines[index]
            index += 1
            if _is_comment(nxt) or not nxt.strip():
                continue
            segment, continued = _trim_continuation(nxt, escape)
            parts.append(segment)
        original = "".join(parts).strip()
        if not original:
            continue
        words = original.split(None, 1)
        nodes.append(
            _Node(
                command=words[0].lower(),
                original=original,
                rest=words[1] if len(words) > 1 else "",
                comments=tuple(comments),
                start_line=start_line,
            )
        )
        comments = []
    return nodes, escape


def _extract_flags(rest: str) -> tuple[list[str], str]:
    flags: list[str] = []
    remaining = rest.strip()
    while True:
        match = re.match(r"(--\S*)(?:\s+|$)", remaining)
        if match is None:
            break
        remaining = remaining[match.end() :]
        token = match.group(1)
        if token == "--":
            break
        flags.append(token[2:])
    return flags, remaining


def _parse_flags(command: str, flags: list[str]) -> dict[str, list[str]]:
    allowed = _FLAGS.get(command, frozenset())
    parsed: dict[str, list[str]] = {}
    for flag in flags:
        name, sep, value = flag.partition("=")
        if name not in allowed:
            raise DockerfileError(f"unknown flag: {name}")
        if not sep:
            if name not in _BOOL_FLAGS:
                raise DockerfileError(f"missing a value on flag: {name}")
            value = "true"
        if name in parsed and name not in _LIST_FLAGS:
            raise DockerfileError(f"duplicate flag specified: {name}")
        parsed.setdefault(name, []).append(value)
    return parsed


def _parse_mount(value: str) -> _Mount:
    fields = next(csv.reader([value]), [])
    mount_type = MOUNT_TYPE_BIND
    source_from = ""
    for item in fields:
        key, _, val = item.partition("=")
        key = key.strip().lower()
        if key not in _MOUNT_KEYS:
            raise DockerfileError(f"unexpected key '{key}' in '{item}'")
        if key == "type":
            if val.lower() not in _MOUNT_TYPES:
                raise DockerfileError(f"unsupported mount type {val!r}")
            mount_type = val.lower()
        elif key == "from":
            source_from = val
    return _Mount(mount_type, source_from)


def _split_words(text: str, escape: str) -> list[str]:
    words: list[str] = []
    current: list[str] = []
    quote = ""
    index = 0
    while index < len(text):
        ch = text[index]
        if quote:
            current.append(ch)
            if ch == escape and quote == '"' and index + 1 < len(text):
                current.append(text[index + 1])
                index += 2
                continue
            if ch == quote:
                quote = ""
        elif ch.isspace():
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
            if ch == escape and index + 1 < len(text):
                current.append(text[index + 1])
                index += 2
                continue
            if ch in "'\"":
                quote = ch
        index += 1
    if current:
        words.append("".join(current))
    return words


def _parse_from(remaining: str) -> tuple[str, str]:
    args = remaining.split()
    if len(args) == 1:
        return args[0], ""
    if len(args) == 3 and args[1].lower() == "as":
        stage = args[2].lower()
        if not _STAGE_NAME_RE.fullmatch(stage):
            raise DockerfileError(
                f"invalid name for build stage: {args[2]!r}, "
                "name can't start with a number or contain symbols"
            )
        return args[0], stage
    raise DockerfileError("FROM requires either one or three arguments")


def _parse_arg(remaining: str, escape: str) -> list[tuple[str, str | None]]:
    words = _split_words(remaining, escape)
    if not words:
        raise DockerfileError("ARG requires at least one argument")
    args: list[tuple[str, str | None]] = []
    for word in words:
        name, sep, value = word.partition("=")
        if not name:
            raise DockerfileError("ARG names can not be blank")
        args.append((name, value if sep else None))
    return args


def _copy_args(remaining: str) -> list[str]:
    if remaining.startswith("["):
        import json

        try:
            loaded = json.loads(remaining)
        except ValueError:
            loaded = None
        if isinstance(loaded, list):
            return [str(item) for item in loaded]
    return remaining.split()


class Dockerfile:
    """A parsed Dockerfile with its build stages and global build arguments."""

    def __init__(self, filename: str) -> None:
        self.filename = str(filename)
        try:
            text = Path(filename).read_text(encoding="utf-8", errors="replace")
        except OSError as err:
            raise DockerfileError(f"cannot read Dockerfile {filename}: {err}") from err

        try:
            nodes, self._escape = _parse_nodes(text)
            if not nodes:
                raise DockerfileError("file with no instructions")
        except DockerfileError as err:
            raise DockerfileError(f"cannot parse Dockerfile {filename}: {err}") from err

        try:
            meta_args = self._parse_instructions(nodes)
        except DockerfileError as err:
            raise DockerfileError(
                f"cannot parse stages for Dockerfile {filename}: {err}"
            ) from err

        self._meta_args: dict[str, str] = {}
        for name, value in meta_args:
            if value is not None:
                try:
                    value = _process_word(value, self._meta_args, self._escape)
                except DockerfileError:
                    pass
            self._meta_args[name] = value or ""

    def _parse_instructions(self, nodes: list[_Node]) -> list[tuple[str, str | None]]:
        self._stage_names: list[str] = []
        self._sources: list[tuple[_Node, list[str]]] = []
        meta_args: list[tuple[str, str | None]] = []
        for node in nodes:
            command = node.command
            if command not in _KNOWN_COMMANDS:
                raise DockerfileError(f"unknown instruction: {command.upper()}")
            flag_words, remaining = _extract_flags(node.rest)
            flags = _parse_flags(command, flag_words)
            if command == "from":
                base, stage = _parse_from(remaining)
                self._stage_names.append(stage)
                self._sources.append((node, [base] if base != "scratch" else []))
                continue
            if command == "arg":
                args = _parse_arg(remaining, self._escape)
                if not self._stage_names:
                    meta_args.extend(args)
                continue
            if not self._stage_names:
                raise DockerfileError("no build stage in current context")
            if command == "copy":
                args = _copy_args(remaining)
                if len(args) < 2:
                    raise DockerfileError(
                        "COPY requires at least two arguments, but only one was "
                        "provided. Destination could not be determined."
                    )
                copy_from = flags.get("from", [""])[-1]
                self._sources.append((node, [copy_from] if copy_from != "null" else []))
            elif command == "run":
                mounts = [_parse_mount(value) for value in flags.get("mount", [])]
                words = [
                    mount.source_from
                    for mount in mounts
                    if mount.type == MOUNT_TYPE_BIND and mount.source_from
                ]
                self._sources.append((node, words))
        return meta_args

    def _is_stage_name(self, name: str) -> bool:
        return name in self._stage_names

    def from_images(self) -> list[FromImage]:
        """Return the external images used by FROM, COPY --from and RUN bind mounts."""
        images: list[FromImage] = []
        seen_lines: set[int] = set()
        for node, words in self._sources:
            for word in words:
                name = _process_word(word, self._meta_args, self._escape)
                if self._is_stage_name(name) or node.start_line in seen_lines:
                    continue
                images.append(
                    FromImage(
                        name=name,
                        code=node.original,
                        comments=list(node.comments),
                        line=node.start_line,
                    )
                )
                seen_lines.add(node.start_line)
        return images