import pytest

from tagwatch.manifest import Manifest, is_manifest_list


@pytest.mark.parametrize(
    ("mime_type", "expected"),
    [
        ("application/vnd.docker.distribution.manifest.list.v2+json", True),
        ("application/vnd.oci.image.index.v1+json", True),
        ("application/vnd.docker.distribution.manifest.v2+json", False),
        ("", False),
    ],
)
def test_is_manifest_list(mime_type, expected):
    assert is_manifest_list(mime_type) is expected


def test_manifest_is_manifest_list_follows_mime_type():
    listed = Manifest(
        name="docker.io/library/mongo",
        tag="3.6.21",
        mime_type="application/vnd.docker.distribution.manifest.list.v2+json",
        digest="sha256:61f5dce8422d36b2a4ad0077bc499b1b68320e13fd30aa0b201c080fef42a39a",
        platform="linux/amd64",
    )
    single = Manifest(
        name="docker.io/portainer/portainer-ce",
        tag="linux-amd64-2.5.1",
        mime_type="application/vnd.docker.distribution.manifest.v2+json",
    )
    assert listed.is_manifest_list() is True
    assert single.is_manifest_list() is False


def test_manifest_defaults_are_empty_and_independent():
    first, second = Manifest(), Manifest()
    first.labels["key"] = "value"
    first.layers.append("layer")
    assert second.labels == {}
    assert second.layers == []
    assert first.created is None
    assert first.is_manifest_list() is False