"""Provider that watches the external images of Dockerfiles."""

from __future__ import annotations

import glob
import logging
from collections.abc import Iterable

from tagwatch.common import (
    Defaults,
    ImageValidationError,
    Job,
    Provider,
    WatchedImage,
    validate_image,
)
from tagwatch.dockerfile import Dockerfile, DockerfileError

log = logging.getLogger(__name__)

DEFAULT_PATTERN = "./Dockerfile"


def list_dockerfiles(patterns: Iterable[str] | None) -> list[str]:
    """Return the files matching ``patterns`` (``**`` allowed), each once, in order."""
    patterns = list(patterns or ()) or [DEFAULT_PATTERN]
    found: list[str] = []
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True))
        if not matches:
            log.debug("No Dockerfile found for %s", pattern)
        for match in matches:
            if match not in found:
                found.append(match)
    return found


def extract_labels(comments: Iterable[str] | None) -> dict[str, str]:
    """Turn ``diun.key=value`` comments into a label mapping."""
    labels: dict[str, str] = {}
    for comment in comments or ():
        if not comment.startswith("diun."):
            continue
        key, sep, value = comment.partition("=")
        if sep:
            labels[key] = value
    return labels


class DockerfileProvider(Provider):
    """Images referenced by FROM, COPY --from and RUN bind mounts in Dockerfiles."""

    name = "dockerfile"

    def __init__(
        self,
        patterns: Iterable[str] | None = None,
        defaults: Defaults | None = None,
    ) -> None:
        self.patterns = list(patterns or ())
        self.defaults = defaults

    def list_jobs(self) -> list[Job]:
        """Return one job per watched image found in the Dockerfiles."""
        return super().list_jobs()

    def list_images(self) -> list[WatchedImage]:
        """Return the watched images of every matching Dockerfile."""
        images: list[WatchedImage] = []
        for filename in list_dockerfiles(self.patterns):
            try:
                from_images = Dockerfile(filename).from_images()
            except DockerfileError as err:
                log.warning("Cannot extract images from %s: %s", filename, err)
                continue
            for from_image in from_images:
                log.debug(
                    "Validate image %s (line %d: %s)",
                    from_image.name,
                    from_image.line,
                    from_image.code,
                )
                try:
                    image = validate_image(
                        from_image.name,
                        None,
                        extract_labels(from_image.comments),
                        True,
                        self.defaults,
                    )
                except ImageValidationError as err:
                    log.error(
                        "Invalid image %s (line %d): %s",
                        from_image.name,
                        from_image.line,
                        err,
                    )
                    continue
                if image.is_empty():
                    log.debug("Watch disabled for %s", from_image.name)
                    continue
                images.append(image)
        return images