"""Sorting and filtering of repository tags."""

from __future__ import annotations

import functools
import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from tagwatch.utl import is_excluded, is_included


class SortTag(str, Enum):
    """How tags of a repository are ordered."""

    DEFAULT = "default"
    REVERSE = "reverse"
    LEXICOGRAPHICAL = "lexicographical"
    SEMVER = "semver"

    @classmethod
    def valid(cls, value: object) -> bool:
        """Return True if ``value`` names a known sort type."""
        try:
            cls(value)
        except ValueError:
            return False
        return True


@dataclass
class Tags:
    """Result of filtering a repository's tags."""

    list: list[str] = field(default_factory=list)
    not_included: int = 0
    excluded: int = 0
    total: int = 0


_SEMVER_RE = re.compile(
    r"v(0|[1-9][0-9]*)"
    r"(?:\.(0|[1-9][0-9]*)"
    r"(?:\.(0|[1-9][0-9]*)"
    r"(?:-([0-9A-Za-z.-]+))?"
    r"(?:\+([0-9A-Za-z.-]+))?)?)?",
    re.ASCII,
)


@dataclass(frozen=True)
class _Version:
    major: str
    minor: str
    patch: str
    prerelease: tuple[str, ...]


def _parse_semver(value: str) -> _Version | None:
    match = _SEMVER_RE.fullmatch(value)
    if match is None:
        return None
    major, minor, patch, pre, build = match.groups()
    prerelease: tuple[str, ...] = ()
    if pre is not None:
        prerelease = tuple(pre.split("."))
        for ident in prerelease:
            if not ident or (ident.isdigit() and len(ident) > 1 and ident[0] == "0"):
                return None
    if build is not None and any(not ident for ident in build.split(".")):
        return None
    return _Version(major, minor or "0", patch or "0", prerelease)


def _compare_int(x: str, y: str) -> int:
    if x == y:
        return 0
    if (len(x), x) < (len(y), y):
        return -1
    return 1


def _compare_identifier(x: str, y: str) -> int:
    x_num, y_num = x.isdigit(), y.isdigit()
    if x_num and y_num:
        return _compare_int(x, y)
    if x_num:
        return -1
    if y_num:
        return 1
    return (x > y) - (x < y)


def _compare_prerelease(x: tuple[str, ...], y: tuple[str, ...]) -> int:
    if x == y:
        return 0
    if not x:
        return 1
    if not y:
        return -1
    for a, b in zip(x, y):
        c = _compare_identifier(a, b)
        if c:
            return c
    return (len(x) > len(y)) - (len(x) < len(y))


def semver_compare(a: str, b: str) -> int:
    """Compare two 'v'-prefixed semantic versions, returning -1, 0 or 1.

    Invalid versions are equal to each other and less than any valid one.
    """
    va, vb = _parse_semver(a), _parse_semver(b)
    if va is None and vb is None:
        return 0
    if va is None:
        return -1
    if vb is None:
        return 1
    for x, y in ((va.major, vb.major), (va.minor, vb.minor), (va.patch, vb.patch)):
        c = _compare_int(x, y)
        if c:
            return c
    return _compare_prerelease(va.prerelease, vb.prerelease)


def _semver_ish(tag: str) -> str:
    start = next(
        (i for i, ch in enumerate(tag) if unicodedata.category(ch).startswith("N")),
        len(tag),
    )
    candidate = f"v{tag[start:]}"
    return candidate if _parse_semver(candidate) is not None else ""


def _semver_order(x: str, y: str) -> int:
    c = semver_compare(_semver_ish(x), _semver_ish(y))
    if c:
        return -c
    dots = x.count(".") - y.count(".")
    if dots:
        return -1 if dots > 0 else 1
    return (x > y) - (x < y)


def sort_tags(tags: Iterable[str], sort_tag: SortTag | str) -> list[str]:
    """Return ``tags`` ordered as ``sort_tag`` asks; unknown types keep the order."""
    tags = list(tags)
    if not SortTag.valid(sort_tag):
        return tags
    kind = SortTag(sort_tag)
    if kind is SortTag.REVERSE:
        return tags[::-1]
    if kind is SortTag.LEXICOGRAPHICAL:
        return sorted(tags)
    if kind is SortTag.SEMVER:
        return sorted(tags, key=functools.cmp_to_key(_semver_order))
    return tags


def filter_tags(
    tags: Iterable[str],
    sort_tag: SortTag | str = SortTag.DEFAULT,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    max_tags: int = 0,
) -> Tags:
    """Sort ``tags`` and keep those included and not excluded, up to ``max_tags``."""
    tags = list(tags)
    include = list(include or ())
    exclude = list(exclude or ())
    result = Tags(total=len(tags))
    for tag in sort_tags(tags, sort_tag):
        if not is_included(tag, include):
            result.not_included += 1
        elif is_excluded(tag, exclude):
            result.excluded += 1
        else:
            result.list.append(tag)
    if max_tags > 0 and len(result.list) >= max_tags:
        result.list = result.list[:max_tags]
    return result