"""Parsing and normalisation of container image references."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

DEFAULT_DOMAIN = "docker.io"
LEGACY_DEFAULT_DOMAIN = "index.docker.io"
OFFICIAL_REPO_PREFIX = "library/"
DEFAULT_TAG = "latest"
NAME_TOTAL_LENGTH_MAX = 255

_ALNUM = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = rf"{_ALNUM}(?:{_SEPARATOR}{_ALNUM})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN_NAME = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*"
_IPV6 = r"\[(?:[a-fA-F0-9:]+)\]"
_DOMAIN = rf"(?:{_DOMAIN_NAME}|{_IPV6})(?::[0-9]+)?"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"
_REMOTE = rf"{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"
_NAME = rf"(?:{_DOMAIN}/)?{_REMOTE}"

_REFERENCE_RE = re.compile(rf"({_NAME})(?::({_TAG}))?(?:@({_DIGEST}))?", re.ASCII)
_NAME_RE = re.compile(rf"(?:({_DOMAIN})/)?({_REMOTE})", re.ASCII)
_IDENTIFIER_RE = re.compile(r"[a-f0-9]{64}")

_DIGEST_HEX_LENGTHS = {"sha256": 64, "sha384": 96, "sha512": 128}


class InvalidReferenceError(ValueError):
    """Raised when an image reference cannot be parsed."""


@dataclass(frozen=True)
class Reference:
    """A normalised image reference: domain, repository path, tag and digest."""

    domain: str
    path: str
    tag: str = ""
    digest: str = ""

    def name(self) -> str:
        """Return the fully qualified repository name."""
        return f"{self.domain}/{self.path}"

    def with_default_tag(self) -> Reference:
        """Return this reference with the default tag added if it has neither tag nor digest."""
        if not self.tag and not self.digest:
            return replace(self, tag=DEFAULT_TAG)
        return self

    def __str__(self) -> str:
        text = self.name()
        if self.tag:
            text += f":{self.tag}"
        if self.digest:
            text += f"@{self.digest}"
        return text


def _split_docker_domain(name: str) -> tuple[str, str]:
    first, sep, rest = name.partition("/")
    if (
        not sep
        or (
            not any(ch in first for ch in ".:")
            and first != "localhost"
            and first.lower() == first
        )
    ):
        domain, remainder = DEFAULT_DOMAIN, name
    else:
        domain, remainder = first, rest
    if domain == LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and "/" not in remainder:
        remainder = OFFICIAL_REPO_PREFIX + remainder
    return domain, remainder


def _validate_digest(digest: str) -> None:
    algorithm, _, encoded = digest.partition(":")
    expected = _DIGEST_HEX_LENGTHS.get(algorithm)
    if expected is None:
        raise InvalidReferenceError(f"unsupported digest algorithm: {digest}")
    if len(encoded) != expected or not re.fullmatch(r"[a-f0-9]+", encoded):
        raise InvalidReferenceError(f"invalid checksum digest format: {digest}")


def _parse(text: str) -> Reference:
    match = _REFERENCE_RE.fullmatch(text)
    if match is None:
        raise InvalidReferenceError(f"invalid reference format: {text}")
    name, tag, digest = match.group(1), match.group(2) or "", match.group(3) or ""
    if len(name) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidReferenceError(
            f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters"
        )
    name_match = _NAME_RE.fullmatch(name)
    if name_match is None:
        raise InvalidReferenceError(f"invalid reference format: {text}")
    if digest:
        _validate_digest(digest)
    return Reference(
        domain=name_match.group(1) or "",
        path=name_match.group(2),
        tag=tag,
        digest=digest,
    )


def parse_normalized_named(name: str) -> Reference:
    """Parse a short or full image name into a normalised reference."""
    if _IDENTIFIER_RE.fullmatch(name):
        raise InvalidReferenceError(
            f"invalid repository name ({name}), cannot specify 64-byte hexadecimal strings"
        )
    domain, remainder = _split_docker_domain(name)
    remote = remainder.split(":", 1)[0]
    if remote.lower() != remote:
        raise InvalidReferenceError(
            f"invalid reference format: repository name ({remote}) must be lowercase"
        )
    return _parse(f"{domain}/{remainder}")


def image_reference(name: str) -> Reference:
    """Return the registry reference for ``name``: the digest dropped, the tag defaulted."""
    stripped = name.removeprefix("//")
    try:
        ref = parse_normalized_named(stripped)
    except InvalidReferenceError as err:
        raise InvalidReferenceError(
            f"cannot parse reference: parsing normalized named {stripped!r}: {err}"
        ) from err
    return replace(ref, digest="").with_default_tag()