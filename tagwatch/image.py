"""Parsed container images and links to their registry web pages."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field

from tagwatch.reference import InvalidReferenceError, Reference, parse_normalized_named

_ACTION_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_FIELD_RE = re.compile(r"\s*\.(\w+)\s*")


class HubLinkError(ValueError):
    """Raised when the hub link of an image cannot be resolved."""


@dataclass(frozen=True)
class Image:
    """An image name broken down into registry domain, path, tag and digest."""

    domain: str
    path: str
    tag: str = ""
    digest: str = ""
    hub_link: str = ""
    ref: Reference | None = field(default=None, repr=False, compare=False)

    def name(self) -> str:
        """Return the full repository name."""
        return self.ref.name() if self.ref else f"{self.domain}/{self.path}"

    def reference(self) -> str:
        """Return the digest when there is one, otherwise the tag."""
        if len(self.digest) > 1:
            return self.digest
        return self.tag

    def __str__(self) -> str:
        return str(self.ref) if self.ref else self.name()


def _render_template(template: str, fields: dict[str, str]) -> str:
    parts = _ACTION_RE.split(template)
    out = []
    for index, part in enumerate(parts):
        if index % 2 == 0:
            if "{{" in part:
                raise HubLinkError("unclosed action in template")
            out.append(part)
            continue
        match = _FIELD_RE.fullmatch(part)
        if match is None:
            raise HubLinkError(f"unsupported template action {{{{{part}}}}}")
        key = match.group(1)
        if key not in fields:
            raise HubLinkError(f"can't evaluate field {key}")
        out.append(fields[key])
    return "".join(out)


def _hub_link(ref: Reference, hub_tpl: str) -> str:
    if hub_tpl:
        # Tag and digest are not yet known when the template is rendered.
        fields = {
            "Domain": ref.domain,
            "Path": ref.path,
            "Tag": "",
            "Digest": "",
            "HubLink": "",
            "Name": ref.name(),
            "String": str(ref),
            "Reference": "",
        }
        return _render_template(hub_tpl, fields)

    domain, path = ref.domain, ref.path
    if domain == "docker.io":
        if path.startswith("library/"):
            return f"https://hub.docker.com/_/{path.replace('library/', '', 1)}"
        return f"https://hub.docker.com/r/{path}"
    if domain in ("docker.bintray.io", "jfrog-docker-reg2.bintray.io"):
        return f"https://bintray.com/jfrog/reg2/{path.replace('/', '%3A')}"
    if domain == "docker.pkg.github.com":
        return f"https://github.com/{posixpath.dirname(path) or '.'}/packages"
    if domain == "gcr.io":
        return f"https://{domain}/{path}"
    if domain == "ghcr.io":
        parts = path.split("/")
        if len(parts) < 2:
            raise HubLinkError(f"cannot resolve owner and package from {path!r}")
        return f"https://github.com/users/{parts[0]}/packages/container/package/{parts[1]}"
    if domain == "quay.io":
        return f"https://quay.io/repository/{path}"
    if domain == "registry.access.redhat.com":
        return f"https://access.redhat.com/containers/#/registry.access.redhat.com/{path}"
    if domain == "registry.gitlab.com":
        return f"https://gitlab.com/{path}/container_registry"
    return ""


def parse_image(name: str, hub_tpl: str = "") -> Image:
    """Parse ``name`` into an Image, adding the default tag when none is given."""
    try:
        ref = parse_normalized_named(name)
    except InvalidReferenceError as err:
        raise InvalidReferenceError(f"parsing image {name} failed: {err}") from err
    ref = ref.with_default_tag()
    try:
        hub_link = _hub_link(ref, hub_tpl)
    except HubLinkError as err:
        raise HubLinkError(f"resolving hub link for image {name} failed: {err}") from err
    return Image(
        domain=ref.domain,
        path=ref.path,
        tag=ref.tag,
        digest=ref.digest,
        hub_link=hub_link,
        ref=ref,
    )