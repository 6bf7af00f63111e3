import pytest

from tagwatch.dockerfile import Dockerfile, DockerfileError

VALID = r"""# syntax=docker/dockerfile:1
ARG DDNS_VERSION=foo

# diun.platform=linux/amd64
FROM alpine:3.14 AS base

# diun.watch_repo=true
# diun.max_tags=10
# diun.platform=linux/amd64
COPY --from=crazymax/yasu / /

# diun.watch_repo=true
# diun.include_tags=^\d+\.\d+\.\d+$
# diun.platform=linux/amd64
RUN --mount=type=bind,target=/usr/local/bin/docker,source=/usr/local/bin/docker,from=crazymax/docker:20.10.6 \
  docker --version

FROM base AS final
# diun.platform=linux/amd64
# diun.metadata.foo=bar
COPY --from=crazymax/ddns-route53:${DDNS_VERSION}@sha256:9cb3af44cdd00615266c87e60bc05cac534297be14c4596800b57322f9313615 /usr/local/bin/ddns-route53 /usr/local/bin/ddns-route53
"""


def _write(tmp_path, content, name="test.Dockerfile"):
    path = tmp_path / name
    path.write_text(content)
    return str(path)


@pytest.fixture
def valid_file(tmp_path):
    return _write(tmp_path, VALID, "valid.Dockerfile")


def test_new_valid(valid_file):
    dfile = Dockerfile(valid_file)
    assert dfile.filename == valid_file


def test_missing_file_fails(tmp_path):
    with pytest.raises(DockerfileError, match="cannot read Dockerfile"):
        Dockerfile(str(tmp_path / "missing.Dockerfile"))


def test_empty_filename_fails():
    with pytest.raises(DockerfileError):
        Dockerfile("")


@pytest.mark.parametrize("content", ["", "\n\n   \n", "# just a comment\n"])
def test_empty_file_fails(tmp_path, content):
    with pytest.raises(DockerfileError, match="file with no instructions"):
        Dockerfile(_write(tmp_path, content))


@pytest.mark.parametrize(
    "content, message",
    [
        ("FROM alpine\nFOO bar\n", "unknown instruction: FOO"),
        ("RUN echo hello\n", "no build stage in current context"),
        ("FROM alpine as\n", "FROM requires either one or three arguments"),
        ("FROM alpine\nCOPY --bogus=1 a b\n", "unknown flag: bogus"),
        ("FROM alpine\nCOPY onlyone\n", "COPY requires at least two arguments"),
        ("FROM alpine\nRUN --mount=type=weird,from=x true\n", "unsupported mount type"),
    ],
)
def test_invalid_file_fails(tmp_path, content, message):
    with pytest.raises(DockerfileError, match=message):
        Dockerfile(_write(tmp_path, content))


def test_from_images(valid_file):
    images = Dockerfile(valid_file).from_images()
    assert len(images) == 4

    assert images[0].name == "alpine:3.14"
    assert images[0].line == 5
    assert images[0].comments == ["diun.platform=linux/amd64"]
    assert images[0].code == "FROM alpine:3.14 AS base"

    assert images[1].name == "crazymax/yasu"
    assert images[1].line == 10
    assert images[1].comments == [
        "diun.watch_repo=true",
        "diun.max_tags=10",
        "diun.platform=linux/amd64",
    ]

    assert images[2].name == "crazymax/docker:20.10.6"
    assert images[2].line == 15
    assert images[2].comments == [
        "diun.watch_repo=true",
        r"diun.include_tags=^\d+\.\d+\.\d+$",
        "diun.platform=linux/amd64",
    ]

    assert (
        images[3].name
        == "crazymax/ddns-route53:foo@sha256:9cb3af44cdd00615266c87e60bc05cac534297be14c4596800b57322f9313615"
    )
    assert images[3].line == 21
    assert images[3].comments == ["diun.platform=linux/amd64", "diun.metadata.foo=bar"]


def test_escape_directive(tmp_path):
    content = "# escape=`\nFROM alpine:3.14 `\n  AS base\nCOPY --from=busybox:1.36 / /\n"
    images = Dockerfile(_write(tmp_path, content)).from_images()
    assert [(image.name, image.line) for image in images] == [
        ("alpine:3.14", 2),
        ("busybox:1.36", 4),
    ]


def test_meta_args_expansion(tmp_path):
    content = "ARG REPO=library\nARG IMAGE=${REPO}/alpine\nFROM ${IMAGE}:${TAG:-3.19}\n"
    images = Dockerfile(_write(tmp_path, content)).from_images()
    assert [image.name for image in images] == ["library/alpine:3.19"]


def test_stage_names_and_scratch_are_skipped(tmp_path):
    content = (
        "FROM scratch AS empty\n"
        "FROM alpine:3.14 AS build\n"
        "FROM build\n"
        "COPY --from=build / /\n"
        "COPY --from=empty / /\n"
    )
    images = Dockerfile(_write(tmp_path, content)).from_images()
    assert [image.name for image in images] == ["alpine:3.14"]


def test_run_keeps_first_bind_mount_per_line(tmp_path):
    content = (
        "FROM alpine:3.14\n"
        "RUN --mount=type=bind,from=first:1,target=/a "
        "--mount=type=bind,from=second:1,target=/b true\n"
        "RUN --mount=type=cache,from=cached:1,target=/c true\n"
    )
    images = Dockerfile(_write(tmp_path, content)).from_images()
    assert [image.name for image in images] == ["alpine:3.14", "first:1"]


def test_empty_comment_resets_comments(tmp_path):
    content = "# diun.enable=false\n#\n# diun.max_tags=3\nFROM alpine:3.14\n"
    images = Dockerfile(_write(tmp_path, content)).from_images()
    assert images[0].comments == ["diun.max_tags=3"]


def test_bad_substitution_raises(tmp_path):
    dfile = Dockerfile(_write(tmp_path, "FROM ${IMAGE\n"))
    with pytest.raises(DockerfileError, match="missing"):
        dfile.from_images()


def test_required_variable_raises(tmp_path):
    dfile = Dockerfile(_write(tmp_path, "FROM ${IMAGE:?must be set}\n"))
    with pytest.raises(DockerfileError, match="IMAGE: must be set"):
        dfile.from_images()