"""Provider that reads the images to watch from YAML files."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from tagwatch.common import (
    Defaults,
    ImagePlatform,
    Job,
    NotifyOn,
    Provider,
    WatchedImage,
    parse_platform,
)
from tagwatch.tags import SortTag

log = logging.getLogger(__name__)

_YAML_EXTENSIONS = (".yaml", ".yml")


class _DecodeError(ValueError):
    """Raised when a YAML document does not describe a list of images."""


class _StrictLoader(yaml.SafeLoader):
    """Safe loader that refuses duplicate mapping keys."""


def _construct_mapping(loader: _StrictLoader, node: yaml.MappingNode) -> dict:
    loader.flatten_mapping(node)
    seen: set = set()
    for key_node, _ in node.value:
        key = loader.construct_object(key_node, deep=True)
        try:
            duplicate = key in seen
        except TypeError as err:
            raise yaml.constructor.ConstructorError(
                None, None, "found unhashable key", key_node.start_mark
            ) from err
        if duplicate:
            raise yaml.constructor.ConstructorError(
                None, None, f"mapping key {key!r} already defined", key_node.start_mark
            )
        seen.add(key)
    return loader.construct_mapping(node, deep=True)


_StrictLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_mapping
)


def _as_str(value: Any, key: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise _DecodeError(f"cannot unmarshal {type(value).__name__} into string field {key}")


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise _DecodeError(f"cannot unmarshal {value!r} into bool field {key}")
    return value


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _DecodeError(f"cannot unmarshal {value!r} into int field {key}")
    return value


def _as_str_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list):
        raise _DecodeError(f"cannot unmarshal {type(value).__name__} into list field {key}")
    return [_as_str(item, key) for item in value]


def _as_notify_on(value: Any, key: str) -> list:
    return [NotifyOn(item) if NotifyOn.valid(item) else item for item in _as_str_list(value, key)]


def _as_sort_tags(value: Any, key: str) -> SortTag | str:
    text = _as_str(value, key)
    return SortTag(text) if SortTag.valid(text) else text


def _as_platform(value: Any, key: str) -> ImagePlatform:
    if not isinstance(value, dict):
        raise _DecodeError(f"cannot unmarshal {type(value).__name__} into mapping field {key}")
    fields = {"os": "", "arch": "", "variant": ""}
    for sub_key, sub_value in value.items():
        if sub_key not in fields:
            raise _DecodeError(f"field {sub_key} not found in type ImagePlatform")
        if sub_value is not None:
            fields[sub_key] = _as_str(sub_value, f"{key}.{sub_key}")
    return ImagePlatform(**fields)


def _as_str_map(value: Any, key: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise _DecodeError(f"cannot unmarshal {type(value).__name__} into mapping field {key}")
    return {_as_str(k, key): _as_str(v, key) for k, v in value.items() if v is not None}


_FIELDS: dict[str, tuple[str, Callable[[Any, str], Any]]] = {
    "name": ("name", _as_str),
    "regopt": ("reg_opt", _as_str),
    "watch_repo": ("watch_repo", _as_bool),
    "notify_on": ("notify_on", _as_notify_on),
    "max_tags": ("max_tags", _as_int),
    "sort_tags": ("sort_tags", _as_sort_tags),
    "include_tags": ("include_tags", _as_str_list),
    "exclude_tags": ("exclude_tags", _as_str_list),
    "hub_tpl": ("hub_tpl", _as_str),
    "hub_link": ("hub_link", _as_str),
    "platform": ("platform", _as_platform),
    "metadata": ("metadata", _as_str_map),
}


def _decode_item(raw: Any) -> WatchedImage:
    image = WatchedImage()
    if raw is None:
        return image
    if not isinstance(raw, dict):
        raise _DecodeError(f"cannot unmarshal {type(raw).__name__} into image")
    for key, value in raw.items():
        if key not in _FIELDS:
            raise _DecodeError(f"field {key} not found in type Image")
        if value is None:
            continue
        attr, convert = _FIELDS[key]
        setattr(image, attr, convert(value, key))
    return image


def _decode_items(text: str) -> list[WatchedImage]:
    try:
        data = yaml.load(text, Loader=_StrictLoader)
    except yaml.YAMLError as err:
        raise _DecodeError(str(err)) from err
    if data is None:
        return []
    if not isinstance(data, list):
        raise _DecodeError(f"cannot unmarshal {type(data).__name__} into list of images")
    return [_decode_item(item) for item in data]


def _format_platform(platform: ImagePlatform) -> str:
    if not platform.os:
        return "unknown"
    return "/".join(part for part in (platform.os, platform.arch, platform.variant) if part)


class FileProvider(Provider):
    """Images listed in a YAML file or in the YAML files of a directory."""

    name = "file"

    def __init__(
        self,
        filename: str = "",
        directory: str = "",
        defaults: Defaults | None = None,
    ) -> None:
        self.filename = str(filename or "")
        self.directory = str(directory or "")
        self.defaults = defaults if defaults is not None else Defaults()

    def list_jobs(self) -> list[Job]:
        """Return one job per image found in the files."""
        return super().list_jobs()

    def files(self) -> list[str]:
        """Return the files to read: the YAML files of the directory, or the filename."""
        if self.directory:
            try:
                entries = sorted(os.scandir(self.directory), key=lambda e: e.name)
            except OSError as err:
                log.error("Unable to read directory %s: %s", self.directory, err)
                return []
            return [
                os.path.normpath(os.path.join(self.directory, entry.name))
                for entry in entries
                if not entry.is_dir(follow_symlinks=False)
                and os.path.splitext(entry.name)[1].lower() in _YAML_EXTENSIONS
            ]
        if self.filename:
            return [self.filename]
        return []

    def list_images(self) -> list[WatchedImage]:
        """Return the images of every file, completed with the provider defaults."""
        images: list[WatchedImage] = []
        for filename in self.files():
            try:
                text = Path(filename).read_text(encoding="utf-8")
            except OSError as err:
                log.error("Unable to read config file %s: %s", filename, err)
                continue
            try:
                items = _decode_items(text)
            except _DecodeError as err:
                log.error("Unable to decode into struct %s: %s", filename, err)
                continue
            images.extend(self._complete(item, filename) for item in items)
        return images

    def _complete(self, item: WatchedImage, filename: str) -> WatchedImage:
        defaults = self.defaults
        if item.watch_repo is None:
            item.watch_repo = defaults.watch_repo

        if not item.notify_on:
            item.notify_on = list(defaults.notify_on)
        else:
            for status in item.notify_on:
                if not NotifyOn.valid(status):
                    log.error(
                        "unknown notify status %r (file=%s, img_name=%s)",
                        status, filename, item.name,
                    )

        if not item.sort_tags:
            item.sort_tags = defaults.sort_tags
        if not SortTag.valid(item.sort_tags):
            log.error(
                "unknown sort tags type %r (file=%s, img_name=%s)",
                item.sort_tags, filename, item.name,
            )

        if item.platform != ImagePlatform():
            formatted = _format_platform(item.platform)
            try:
                parse_platform(formatted)
            except ValueError:
                log.error(
                    "cannot parse %s platform (file=%s, img_name=%s)",
                    formatted, filename, item.name,
                )

        if item.max_tags == 0:
            item.max_tags = defaults.max_tags
        if not item.include_tags:
            item.include_tags = list(defaults.include_tags)
        if not item.exclude_tags:
            item.exclude_tags = list(defaults.exclude_tags)
        return item