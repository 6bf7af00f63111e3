import pytest

from tagwatch.containers import (
    format_names,
    format_size,
    human_size,
    is_dangling_image,
    is_digest,
    is_local_image,
    parse_service_tags,
)

HEX = "0123456789abcdef" * 4


@pytest.mark.parametrize(
    "tags, expected",
    [
        (["noequal"], {}),
        (["emptyequal="], {"emptyequal": ""}),
        (["key=value"], {"key": "value"}),
        (["withequal=a=b"], {"withequal": "a=b"}),
    ],
)
def test_parse_service_tags(tags, expected):
    assert parse_service_tags(tags) == expected


def test_parse_service_tags_last_wins():
    assert parse_service_tags(["a=1", "a=2"]) == {"a": "2"}


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0B"),
        (500, "500B"),
        (1000, "1kB"),
        (1234567, "1.23MB"),
        (999999, "1e+03kB"),
    ],
)
def test_human_size(size, expected):
    assert human_size(size, 3) == expected


def test_format_size_without_virtual():
    assert format_size(1000, 0) == "1kB"


def test_format_size_with_virtual():
    assert format_size(1000, 2000000) == "1kB (virtual 2MB)"


def test_format_names():
    assert format_names(["/web", "/db"]) == "web,db"
    assert format_names([]) == ""


@pytest.mark.parametrize(
    "image_id, expected",
    [
        ("sha256:" + HEX, True),
        ("@" + HEX, True),
        ("@sha256:" + HEX, True),
        (HEX, False),
        ("sha256:" + HEX.upper(), False),
        ("sha256:" + HEX[:-1], False),
        ("alpine:latest", False),
    ],
)
def test_is_digest(image_id, expected):
    assert is_digest(image_id) is expected


def test_is_local_image():
    assert is_local_image([]) is True
    assert is_local_image(None) is True
    assert is_local_image(["alpine@sha256:" + HEX]) is False


def test_is_dangling_image():
    assert is_dangling_image(["<none>:<none>"], ["<none>@<none>"]) is True
    assert is_dangling_image(["alpine:latest"], ["<none>@<none>"]) is False
    assert is_dangling_image(["<none>:<none>"], []) is False