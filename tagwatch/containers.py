"""Helpers for container, image and orchestrator metadata."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

_DIGEST_RE = re.compile(r"(@|sha256:|@sha256:)([0-9a-f]{64})")
_DECIMAL_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def human_size(size: float, precision: int = 3) -> str:
    """Return ``size`` bytes in decimal units with ``precision`` significant digits."""
    size = float(size)
    index = 0
    while size >= 1000.0 and index < len(_DECIMAL_UNITS) - 1:
        size /= 1000.0
        index += 1
    return f"{size:.{precision}g}{_DECIMAL_UNITS[index]}"


def format_names(names: Iterable[str]) -> str:
    """Join container names with commas, dropping their leading slash."""
    return ",".join(name[1:] for name in names)


def format_size(size_rw: int, size_root_fs: int) -> str:
    """Describe a container's writable size, with its virtual size when known."""
    writable = human_size(size_rw, 3)
    if size_root_fs > 0:
        return f"{writable} (virtual {human_size(size_root_fs, 3)})"
    return writable


def is_digest(image_id: str) -> bool:
    """Return True if ``image_id`` looks like a digest-based image reference."""
    return _DIGEST_RE.fullmatch(image_id) is not None


def is_local_image(repo_digests: Sequence[str] | None) -> bool:
    """Return True if an image with these repository digests was built locally."""
    return not repo_digests


def is_dangling_image(
    repo_tags: Sequence[str] | None, repo_digests: Sequence[str] | None
) -> bool:
    """Return True if the image has no repository references at all."""
    return list(repo_tags or ()) == ["<none>:<none>"] and list(repo_digests or ()) == [
        "<none>@<none>"
    ]


def parse_service_tags(tags: Iterable[str]) -> dict[str, str]:
    """Turn ``key=value`` service tags into labels; tags without '=' are ignored."""
    labels: dict[str, str] = {}
    for tag in tags:
        key, sep, value = tag.partition("=")
        if sep:
            labels[key] = value
    return labels