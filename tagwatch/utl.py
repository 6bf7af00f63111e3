"""Small helpers shared across the package: regex filters, environment and secrets."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path


def match_string(exp: str, s: str) -> bool:
    """Report whether ``s`` contains a match of the regular expression ``exp``.

    An invalid expression never matches.
    """
    try:
        pattern = re.compile(exp)
    except re.error:
        return False
    return pattern.search(s) is not None


def is_included(s: str, includes: Iterable[str] | None) -> bool:
    """Return True if ``s`` matches one of ``includes``; an empty list includes all."""
    patterns = list(includes or ())
    if not patterns:
        return True
    return any(match_string(include, s) for include in patterns)


def is_excluded(s: str, excludes: Iterable[str] | None) -> bool:
    """Return True if ``s`` matches one of ``excludes``; an empty list excludes nothing."""
    return any(match_string(exclude, s) for exclude in excludes or ())


def get_env(key: str, fallback: str) -> str:
    """Return the environment variable ``key`` or ``fallback`` when it is unset."""
    return os.environ.get(key, fallback)


def get_secret(plaintext: str, filename: str) -> str:
    """Return ``plaintext`` if set, else the content of ``filename`` if set, else ''."""
    if plaintext:
        return plaintext
    if filename:
        return Path(filename).read_text()
    return ""