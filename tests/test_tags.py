import pytest

from tagwatch.tags import SortTag, Tags, filter_tags, semver_compare, sort_tags

REPOTAGS = [
    "0.1.0", "0.4.0", "3.0.0-beta.1", "3.0.0-beta.3", "3.0.0-beta.4", "4", "4.0.0",
    "4.0.0-beta.1", "4.1.0", "4.1.1", "4.10.0", "4.11.0", "4.12.0", "4.13.0", "4.14.0",
    "4.19.0", "4.2.0", "4.20", "4.20.0", "4.20.1", "4.21", "4.21.0", "4.3.0", "4.3.1",
    "4.4.0", "4.6.1", "4.7.0", "4.8.0", "4.8.1", "4.9.0", "ubuntu-5.0", "alpine-5.0",
    "edge", "latest",
]

LEXICOGRAPHICAL = [
    "0.1.0", "0.4.0", "3.0.0-beta.1", "3.0.0-beta.3", "3.0.0-beta.4", "4", "4.0.0",
    "4.0.0-beta.1", "4.1.0", "4.1.1", "4.10.0", "4.11.0", "4.12.0", "4.13.0", "4.14.0",
    "4.19.0", "4.2.0", "4.20", "4.20.0", "4.20.1", "4.21", "4.21.0", "4.3.0", "4.3.1",
    "4.4.0", "4.6.1", "4.7.0", "4.8.0", "4.8.1", "4.9.0", "alpine-5.0", "edge", "latest",
    "ubuntu-5.0",
]

REVERSE = [
    "latest", "edge", "alpine-5.0", "ubuntu-5.0", "4.9.0", "4.8.1", "4.8.0", "4.7.0",
    "4.6.1", "4.4.0", "4.3.1", "4.3.0", "4.21.0", "4.21", "4.20.1", "4.20.0", "4.20",
    "4.2.0", "4.19.0", "4.14.0", "4.13.0", "4.12.0", "4.11.0", "4.10.0", "4.1.1", "4.1.0",
    "4.0.0-beta.1", "4.0.0", "4", "3.0.0-beta.4", "3.0.0-beta.3", "3.0.0-beta.1", "0.4.0",
    "0.1.0",
]

SEMVER = [
    "alpine-5.0", "ubuntu-5.0", "4.21.0", "4.21", "4.20.1", "4.20.0", "4.20", "4.19.0",
    "4.14.0", "4.13.0", "4.12.0", "4.11.0", "4.10.0", "4.9.0", "4.8.1", "4.8.0", "4.7.0",
    "4.6.1", "4.4.0", "4.3.1", "4.3.0", "4.2.0", "4.1.1", "4.1.0", "4.0.0", "4",
    "4.0.0-beta.1", "3.0.0-beta.4", "3.0.0-beta.3", "3.0.0-beta.1", "0.4.0", "0.1.0",
    "edge", "latest",
]


@pytest.mark.parametrize(
    ("sort_tag", "expected"),
    [
        (SortTag.DEFAULT, REPOTAGS),
        (SortTag.LEXICOGRAPHICAL, LEXICOGRAPHICAL),
        (SortTag.REVERSE, REVERSE),
        (SortTag.SEMVER, SEMVER),
    ],
)
def test_sort_tags(sort_tag, expected):
    assert sort_tags(list(REPOTAGS), sort_tag) == expected


def test_sort_tags_accepts_plain_string():
    assert sort_tags(list(REPOTAGS), "semver") == SEMVER


def test_sort_tags_does_not_mutate_input():
    tags = list(REPOTAGS)
    sort_tags(tags, SortTag.REVERSE)
    assert tags == REPOTAGS


def test_sort_tags_unknown_keeps_order():
    assert sort_tags(list(REPOTAGS), "chickens") == REPOTAGS


@pytest.mark.parametrize("value", ["default", "reverse", "lexicographical", "semver"])
def test_sort_tag_valid(value):
    assert SortTag.valid(value) is True


def test_sort_tag_invalid():
    assert SortTag.valid("chickens") is False
    assert SortTag.valid("") is False


def test_semver_compare_orders_versions():
    assert semver_compare("v4.10.0", "v4.9.0") == 1
    assert semver_compare("v4.0.0-beta.1", "v4.0.0") == -1
    assert semver_compare("v4", "v4.0.0") == 0


def test_semver_compare_invalid_versions():
    assert semver_compare("", "") == 0
    assert semver_compare("", "v1.0.0") == -1
    assert semver_compare("v1.0.0", "not-a-version") == 1
    assert semver_compare("v01.0.0", "") == 0


def test_semver_compare_antisymmetric():
    versions = ["v0.1.0", "v3.0.0-beta.3", "v3.0.0-beta.4", "v4.21", "v4.21.0", "vx"]
    for a in versions:
        for b in versions:
            assert semver_compare(a, b) == -semver_compare(b, a)


def test_filter_tags_counts_and_filters():
    result = filter_tags(
        REPOTAGS,
        SortTag.SEMVER,
        include=[r"^4\.2"],
        exclude=[r"^4\.20"],
    )
    assert result.total == len(REPOTAGS)
    assert result.list == ["4.21.0", "4.21", "4.2.0"]
    assert result.excluded == 3
    assert result.not_included == len(REPOTAGS) - 6


def test_filter_tags_max():
    result = filter_tags(REPOTAGS, SortTag.REVERSE, max_tags=3)
    assert result.list == REVERSE[:3]
    assert result.total == len(REPOTAGS)


def test_filter_tags_empty():
    assert filter_tags([], SortTag.DEFAULT) == Tags(list=[], not_included=0, excluded=0, total=0)