"""Image manifest information as returned by a registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DOCKER_V2_LIST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_IMAGE_INDEX_MEDIA_TYPE = "application/vnd.oci.image.index.v1+json"


def is_manifest_list(mime_type: str) -> bool:
    """Return True if ``mime_type`` is a manifest list or image index media type."""
    return mime_type in (DOCKER_V2_LIST_MEDIA_TYPE, OCI_IMAGE_INDEX_MEDIA_TYPE)


@dataclass
class Manifest:
    """Manifest details of an image in a registry."""

    name: str = ""
    tag: str = ""
    mime_type: str = ""
    digest: str = ""
    created: datetime | None = None
    docker_version: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    layers: list[str] = field(default_factory=list)
    platform: str = ""
    raw: bytes = b""

    def is_manifest_list(self) -> bool:
        """Return True if this manifest is a list of per-platform manifests."""
        return is_manifest_list(self.mime_type)