"""Watched images, provider defaults and validation of image labels."""

from __future__ import annotations

import json
import logging
import platform as _platform
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from tagwatch.tags import SortTag

log = logging.getLogger(__name__)

METADATA_KEY_CHARS = "a-zA-Z0-9_"
_METADATA_KEY_RE = re.compile(rf"[{METADATA_KEY_CHARS}]+")
_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_SPECIFIER_PART_RE = re.compile(r"[A-Za-z0-9_-]+", re.ASCII)

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_KNOWN_OS = frozenset(
    {
        "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
        "ios", "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris",
        "windows", "zos",
    }
)
_KNOWN_ARCH = frozenset(
    {
        "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be", "ppc64",
        "ppc64le", "loong64", "mips", "mipsle", "mips64", "mips64le", "mips64p32",
        "mips64p32le", "ppc", "riscv", "riscv64", "s390", "s390x", "sparc",
        "sparc64", "wasm",
    }
)


class NotifyOn(str, Enum):
    """Image events that trigger a notification."""

    NEW = "new"
    UPDATE = "update"

    @classmethod
    def valid(cls, value: object) -> bool:
        """Return True if ``value`` names a known notify status."""
        try:
            cls(value)
        except ValueError:
            return False
        return True


NOTIFY_ON_DEFAULTS = (NotifyOn.NEW, NotifyOn.UPDATE)


class ImageValidationError(ValueError):
    """Raised when the labels of an image cannot be applied."""


@dataclass(frozen=True)
class ImagePlatform:
    """Operating system, architecture and variant of an image."""

    os: str = ""
    arch: str = ""
    variant: str = ""


@dataclass
class WatchedImage:
    """An image to watch together with its watch options."""

    name: str = ""
    reg_opt: str = ""
    watch_repo: bool | None = None
    notify_on: list[NotifyOn] = field(default_factory=list)
    max_tags: int = 0
    sort_tags: SortTag | None = None
    include_tags: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    hub_tpl: str = ""
    hub_link: str = ""
    platform: ImagePlatform = field(default_factory=ImagePlatform)
    metadata: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """Return True if no option at all is set, meaning the image is not watched."""
        return self == WatchedImage()


@dataclass
class Defaults:
    """Default watch options applied to every image of a provider."""

    watch_repo: bool | None = None
    notify_on: list[NotifyOn] = field(default_factory=list)
    max_tags: int = 0
    sort_tags: SortTag | None = None
    include_tags: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Job:
    """An image to analyse, with the provider it came from."""

    provider: str
    image: WatchedImage


class Provider(ABC):
    """A source of images to watch."""

    name: str = ""

    @abstractmethod
    def list_images(self) -> list[WatchedImage]:
        """Return the images this provider knows of."""

    def list_jobs(self) -> list[Job]:
        """Return one job per image found by the provider."""
        images = self.list_images()
        if not images:
            log.warning("No image found")
            return []
        log.info("Found %d image(s) to analyze", len(images))
        return [Job(provider=self.name, image=image) for image in images]

    def close(self) -> None:
        """Release resources held by the provider."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def parse_bool(value: str) -> bool:
    """Parse a boolean the way configuration labels spell it ('1', 't', 'true', ...)."""
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"parsing {_quote(value)}: invalid syntax")


def _parse_int(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"parsing {_quote(value)}: invalid syntax")
    return int(value)


def _normalize_os(os_name: str) -> str:
    os_name = os_name.lower()
    return "darwin" if os_name == "macos" else os_name


def _normalize_arch(arch: str, variant: str) -> tuple[str, str]:
    arch, variant = arch.lower(), variant.lower()
    if arch == "i386":
        return "386", ""
    if arch in ("x86_64", "x86-64", "amd64"):
        return "amd64", "" if variant == "v1" else variant
    if arch in ("aarch64", "arm64"):
        if variant in ("8", "v8", "v8.0"):
            variant = "v8"
        return "arm64", variant
    if arch == "armhf":
        return "arm", "v7"
    if arch == "armel":
        return "arm", "v6"
    if arch == "arm":
        if variant in ("", "7"):
            variant = "v7"
        elif variant in ("5", "6", "8"):
            variant = f"v{variant}"
        return "arm", variant
    return arch, variant


def _default_os() -> str:
    system = _platform.system().lower()
    return system if system in _KNOWN_OS else "linux"


def _default_arch() -> str:
    arch, _ = _normalize_arch(_platform.machine() or "amd64", "")
    return arch if arch in _KNOWN_ARCH else "amd64"


def parse_platform(value: str) -> ImagePlatform:
    """Parse a platform specifier such as 'linux/arm/v7'."""
    parts = value.split("/")
    for part in parts:
        if not _SPECIFIER_PART_RE.fullmatch(part):
            raise ValueError(
                f"{_quote(part)}: invalid platform specifier component, "
                f"must match {_quote(_SPECIFIER_PART_RE.pattern)}"
            )
    if len(parts) == 1:
        os_name = _normalize_os(parts[0])
        if os_name in _KNOWN_OS:
            return ImagePlatform(os=os_name, arch=_default_arch())
        arch, variant = _normalize_arch(parts[0], "")
        if arch in _KNOWN_ARCH:
            if arch == "arm" and variant == "v7":
                variant = ""
            return ImagePlatform(os=_default_os(), arch=arch, variant=variant)
        raise ValueError(f"{_quote(value)}: unknown operating system or architecture")
    if len(parts) == 2:
        arch, variant = _normalize_arch(parts[1], "")
        if arch == "arm" and variant == "v7":
            variant = ""
        return ImagePlatform(os=_normalize_os(parts[0]), arch=arch, variant=variant)
    if len(parts) == 3:
        arch, variant = _normalize_arch(parts[1], parts[2])
        if arch == "arm64" and not variant:
            variant = "v8"
        return ImagePlatform(os=_normalize_os(parts[0]), arch=arch, variant=variant)
    raise ValueError(f"{_quote(value)}: cannot parse platform specifier")


def _split(value: str) -> list[str]:
    return value.split(";")


def _apply_label(img: WatchedImage, key: str, value: str) -> None:
    if key == "diun.regopt":
        img.reg_opt = value
    elif key == "diun.watch_repo":
        try:
            img.watch_repo = parse_bool(value)
        except ValueError as err:
            raise ImageValidationError(
                f"cannot parse {_quote(value)} value of label {key}: {err}"
            ) from err
    elif key == "diun.notify_on":
        if not value:
            return
        img.notify_on = []
        for status in _split(value):
            if not NotifyOn.valid(status):
                raise ImageValidationError(f"unknown notify status {_quote(value)}")
            img.notify_on.append(NotifyOn(status))
    elif key == "diun.sort_tags":
        if not value:
            return
        if not SortTag.valid(value):
            raise ImageValidationError(f"unknown sort tags type {_quote(value)}")
        img.sort_tags = SortTag(value)
    elif key == "diun.max_tags":
        try:
            img.max_tags = _parse_int(value)
        except ValueError as err:
            raise ImageValidationError(
                f"cannot parse {_quote(value)} value of label {key}: {err}"
            ) from err
    elif key == "diun.include_tags":
        img.include_tags = _split(value)
    elif key == "diun.exclude_tags":
        img.exclude_tags = _split(value)
    elif key == "diun.hub_tpl":
        img.hub_tpl = value
    elif key == "diun.hub_link":
        img.hub_link = value
    elif key == "diun.platform":
        try:
            img.platform = parse_platform(value)
        except ValueError as err:
            raise ImageValidationError(
                f"cannot parse {_quote(value)} platform of label {key}: {err}"
            ) from err
    elif key.startswith("diun.metadata."):
        mkey = key.removeprefix("diun.metadata.")
        if not mkey or not value:
            return
        if not _METADATA_KEY_RE.fullmatch(mkey):
            raise ImageValidationError(
                f"invalid metadata key {_quote(mkey)}: "
                f"only {_quote(METADATA_KEY_CHARS)} are allowed"
            )
        img.metadata[mkey] = value


def validate_image(
    image: str,
    metadata: Mapping[str, str] | None = None,
    labels: Mapping[str, str] | None = None,
    watch_by_default: bool = False,
    defaults: Defaults | None = None,
) -> WatchedImage:
    """Build the watched image for ``image`` from defaults and ``diun.*`` labels.

    Returns an empty image when the image is not to be watched, and raises
    ImageValidationError when a label cannot be applied.
    """
    img = WatchedImage(name=image)
    if defaults is not None:
        img.watch_repo = defaults.watch_repo
        img.notify_on = list(defaults.notify_on)
        img.max_tags = defaults.max_tags
        img.sort_tags = defaults.sort_tags
        img.include_tags = list(defaults.include_tags)
        img.exclude_tags = list(defaults.exclude_tags)
        img.metadata = dict(defaults.metadata)

    labels = labels or {}
    if "diun.enable" in labels:
        enable_str = labels["diun.enable"]
        try:
            enable = parse_bool(enable_str)
        except ValueError as err:
            raise ImageValidationError(
                f"cannot parse {_quote(enable_str)} value of label diun.enable: {err}"
            ) from err
        if not enable:
            return WatchedImage()
    elif not watch_by_default:
        return WatchedImage()

    for key, value in labels.items():
        _apply_label(img, key, value)

    # Provider metadata fills in what the labels left unset.
    for key, value in (metadata or {}).items():
        if not img.metadata.get(key):
            img.metadata[key] = value

    return img


def images_to_jobs(provider: str, images: Iterable[WatchedImage]) -> list[Job]:
    """Wrap ``images`` into jobs of ``provider``."""
    return [Job(provider=provider, image=image) for image in images]