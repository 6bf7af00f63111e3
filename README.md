# tagwatch

tagwatch collects the container images you want to keep an eye on. It finds
images in Dockerfiles and in YAML image lists, applies per-image settings
written as `diun.*` labels, normalises image references, and sorts and
filters lists of repository tags.

## Modules

- `tagwatch.reference` — `parse_normalized_named` turns short or full image
  names into a `Reference` (domain, path, tag, digest); `image_reference`
  drops the digest and adds the `latest` tag when none is given. Bad names
  raise `InvalidReferenceError`.
- `tagwatch.image` — `parse_image(name, hub_tpl)` returns an `Image` with
  domain, path, tag, digest and a hub link for well-known registries
  (Docker Hub, GCR, GHCR, Quay, GitLab, Red Hat, GitHub packages, Bintray).
  A `hub_tpl` such as `https://{{ .Domain }}/ui/repos/{{ .Path }}` replaces
  the built-in links; only `{{ .Field }}` actions are understood, and an
  unusable template raises `HubLinkError`. `Image.reference()` gives the
  digest if there is one, otherwise the tag.
- `tagwatch.tags` — `sort_tags` orders tags by a `SortTag`
  (`default`, `reverse`, `lexicographical`, `semver`); `filter_tags` sorts,
  applies include and exclude regular expressions and a maximum count, and
  returns a `Tags` summary (`list`, `not_included`, `excluded`, `total`).
  `semver_compare` compares two `v`-prefixed versions.
- `tagwatch.manifest` — the `Manifest` record and `is_manifest_list` for
  telling manifest lists and OCI image indexes apart.
- `tagwatch.common` — `WatchedImage`, `Defaults`, `Job`, `NotifyOn`,
  `ImagePlatform`, the `Provider` base class, `parse_bool`,
  `parse_platform` and `validate_image`, which builds a `WatchedImage` from
  an image name, provider metadata, labels and defaults. It returns an empty
  image when the image is not to be watched and raises
  `ImageValidationError` for labels it cannot accept.
- `tagwatch.dockerfile` — `Dockerfile(filename).from_images()` lists the
  external images used by `FROM`, `COPY --from` and
  `RUN --mount=type=bind,from=...`, with global `ARG` values expanded and
  build-stage names skipped. Unreadable or invalid files raise
  `DockerfileError`.
- `tagwatch.dockerfile_provider` — `DockerfileProvider(patterns, defaults)`
  reads the Dockerfiles matched by glob patterns (`**` allowed, default
  `./Dockerfile`) and takes labels from `diun.key=value` comments above
  each instruction. `list_dockerfiles` and `extract_labels` are available on
  their own.
- `tagwatch.file_provider` — `FileProvider(filename, directory, defaults)`
  reads image lists from one YAML file or from every `.yml`/`.yaml` file of a
  directory, filling unset options from the defaults.
- `tagwatch.containers` — small helpers for container metadata:
  `human_size`, `format_size`, `format_names`, `is_digest`,
  `is_local_image`, `is_dangling_image` and `parse_service_tags`.
- `tagwatch.utl` — `match_string`, `is_included`, `is_excluded`, `get_env`
  and `get_secret`.

Both providers hand back `Job` entries through `list_jobs()`.

## Examples

Sorting tags by semantic version, newest first:

```python
from tagwatch.tags import SortTag, sort_tags

tags = ["4.1.0", "4.10.0", "4.2.0", "latest"]
print(sort_tags(tags, SortTag("semver")))
# ['4.10.0', '4.2.0', '4.1.0', 'latest']
```

Normalising a reference:

```python
from tagwatch.reference import image_reference

print(image_reference("busybox:v1.0.0"))
# docker.io/library/busybox:v1.0.0
```

Validating an image against its labels:

```python
from tagwatch.common import validate_image

image = validate_image(
    "myimg",
    None,
    {"diun.max_tags": "10", "diun.sort_tags": "semver"},
    True,
    None,
)
```

Listing the images of a Dockerfile:

```python
from tagwatch.dockerfile import Dockerfile

for found in Dockerfile("Dockerfile").from_images():
    print(found.line, found.name)
```

Collecting jobs from a directory of YAML image lists:

```python
from tagwatch.common import Defaults
from tagwatch.file_provider import FileProvider

provider = FileProvider("", "./images", Defaults())
for job in provider.list_jobs():
    print(job.provider, job.image.name)
```

## Labels

Images are configured with labels (in Dockerfiles, with comments just above
the instruction) such as:

```
# diun.watch_repo=true
# diun.max_tags=10
# diun.include_tags=^\d+\.\d+\.\d+$
# diun.platform=linux/amd64
FROM alpine:3.14
```

Recognised keys are `diun.enable`, `diun.regopt`, `diun.watch_repo`,
`diun.notify_on`, `diun.sort_tags`, `diun.max_tags`, `diun.include_tags`,
`diun.exclude_tags`, `diun.hub_tpl`, `diun.hub_link`, `diun.platform` and
`diun.metadata.<key>`. Lists are separated by `;`.

## What it does not do

tagwatch works on names, labels, files and tag lists you give it. It does not
contact registries: it neither fetches tag lists nor downloads manifests.
It has no clients for Docker, Swarm, Kubernetes or Nomad, sends no
notifications, keeps no database of seen images, runs no schedule and has
no command-line program.