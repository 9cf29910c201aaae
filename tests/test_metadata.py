"""Tests for the depot metadata decoder."""

import json
from pathlib import Path

import pytest

from depot_build.exceptions import DecodeError, NotFoundError
from depot_build.metadata import (
    BuildMetadata,
    DepotBuild,
    Manifest,
    OCIDescriptor,
    parse_bake_metadata,
    parse_build_metadata,
    read_bake_metadata,
    read_build_metadata,
)

from conftest import BAKE_METADATA, BUILD_METADATA


def test_parse_build_metadata(build_metadata: str) -> None:
    """Test parsing the metadata of a multi-platform build."""
    metadata = parse_build_metadata(build_metadata)
    assert metadata.image_name == "registry.depot.dev/abc123:k8xz7qv0ls"
    assert metadata.depot_build == DepotBuild(build_id="k8xz7qv0ls", project_id="abc123")
    assert metadata.descriptor.media_type == "application/vnd.oci.image.index.v1+json"
    assert metadata.descriptor.size == 1609
    assert len(metadata.manifests) == 2
    manifest = metadata.manifests[0]
    assert manifest.schema_version == 2
    assert manifest.config.size == 1000
    assert [layer.size for layer in manifest.layers] == [20000, 300]
    assert manifest.layers[0].digest.startswith("sha256:2222")


def test_build_metadata_size(build_metadata: str) -> None:
    """Test the image size is the index, configs and layers of all platforms."""
    metadata = parse_build_metadata(build_metadata)
    assert metadata.size == 1609 + (1000 + 20000 + 300) + (1100 + 21000 + 400)


def test_build_metadata_size_no_manifests() -> None:
    """Test the size of a manifest list without manifests is the descriptor size."""
    metadata = parse_build_metadata(
        json.dumps({"containerimage.descriptor": {"size": 1234}})
    )
    assert metadata.manifests == []
    assert metadata.size == 1234


def test_size_matches_constructed_metadata(build_metadata: str) -> None:
    """Test the size is the same for decoded and constructed metadata."""
    metadata = BuildMetadata(
        descriptor=OCIDescriptor(size=10),
        manifests=[
            Manifest(
                config=OCIDescriptor(size=1),
                layers=[OCIDescriptor(size=100), OCIDescriptor(size=1000)],
            ),
            Manifest(config=OCIDescriptor(size=2)),
        ],
    )
    assert metadata.size == 1113
    assert parse_build_metadata(json.dumps(metadata.to_dict())).size == 1113


def test_parse_build_metadata_defaults() -> None:
    """Test absent fields default to empty values."""
    metadata = parse_build_metadata("{}")
    assert metadata.image_name == ""
    assert metadata.depot_build == DepotBuild()
    assert metadata.descriptor == OCIDescriptor()
    assert metadata.size == 0


def test_parse_build_metadata_unknown_fields() -> None:
    """Test unknown fields are ignored."""
    metadata = parse_build_metadata(
        json.dumps(
            {
                "image.name": "registry.depot.dev/abc123:xyz",
                "buildx.build.provenance": {"buildType": "https://mobyproject.org"},
                "containerimage.buildinfo/linux/amd64": {"frontend": "dockerfile.v0"},
            }
        )
    )
    assert metadata.image_name == "registry.depot.dev/abc123:xyz"


def test_to_dict_uses_aliases() -> None:
    """Test serializing uses the field names written by depot."""
    metadata = BuildMetadata(
        depot_build=DepotBuild(build_id="b1", project_id="p1"),
        image_name="registry.depot.dev/p1:b1",
    )
    data = metadata.to_dict()
    assert data["image.name"] == "registry.depot.dev/p1:b1"
    assert data["depot.build"] == {"buildID": "b1", "projectID": "p1"}
    assert data["containerimage.descriptor"] == {
        "mediaType": "",
        "digest": "",
        "size": 0,
    }


@pytest.mark.parametrize(
    ("content"),
    [
        "not json",
        "[]",
        '"registry.depot.dev"',
        '{"containerimage.descriptor": "sha256:abc"}',
        '{"containerimage.descriptor": {"size": "large"}}',
        '{"manifests": [{"layers": [{"size": true}]}]}',
        '{"manifests": ["sha256:abc"]}',
    ],
    ids=[
        "invalid-json",
        "list",
        "string",
        "descriptor-string",
        "size-string",
        "size-bool",
        "manifest-string",
    ],
)
def test_parse_build_metadata_invalid(content: str) -> None:
    """Test malformed metadata files."""
    with pytest.raises(DecodeError):
        parse_build_metadata(content)


def test_parse_bake_metadata(bake_metadata: str) -> None:
    """Test parsing the metadata of a bake."""
    metadata = parse_bake_metadata(bake_metadata)
    assert metadata.depot_build == DepotBuild(build_id="r2c9mmx4bd", project_id="abc123")
    assert set(metadata.targets) == {"web", "api"}
    web = metadata.targets["web"]
    assert web.image_name == "registry.depot.dev/abc123:r2c9mmx4bd-web"
    assert web.size == 500 + 100 + 1000 + 2000
    api = metadata.targets["api"]
    assert api.image_name == "registry.depot.dev/abc123:r2c9mmx4bd-api"
    assert api.size == 600 + 200 + 4000


def test_parse_bake_metadata_key_order(bake_metadata: str) -> None:
    """Test the reserved key is found regardless of its position."""
    doc = json.loads(bake_metadata)
    reordered = {
        "api": doc["api"],
        "web": doc["web"],
        "depot.build": doc["depot.build"],
    }
    expected = parse_bake_metadata(bake_metadata)
    metadata = parse_bake_metadata(json.dumps(reordered))
    assert metadata.depot_build == expected.depot_build
    assert metadata.targets == expected.targets


def test_parse_bake_metadata_without_build() -> None:
    """Test a bake without build identifiers."""
    metadata = parse_bake_metadata('{"web": {"image.name": "web"}}')
    assert metadata.depot_build == DepotBuild()
    assert list(metadata.targets) == ["web"]


@pytest.mark.parametrize(
    ("content"),
    [
        "[]",
        '{"depot.build": "r2c9mmx4bd"}',
        '{"web": "registry.depot.dev/abc123"}',
        '{"web": {"manifests": {"config": {}}}}',
    ],
    ids=["list", "build-string", "target-string", "target-manifests-object"],
)
def test_parse_bake_metadata_invalid(content: str) -> None:
    """Test malformed bake metadata files."""
    with pytest.raises(DecodeError):
        parse_bake_metadata(content)


async def test_read_build_metadata() -> None:
    """Test reading a build metadata file."""
    metadata = await read_build_metadata(BUILD_METADATA)
    assert metadata.image_name == "registry.depot.dev/abc123:k8xz7qv0ls"


async def test_read_bake_metadata() -> None:
    """Test reading a bake metadata file."""
    metadata = await read_bake_metadata(BAKE_METADATA)
    assert list(metadata.targets) == ["web", "api"]


async def test_read_metadata_missing(tmp_path: Path) -> None:
    """Test reading a metadata file that was not written."""
    with pytest.raises(NotFoundError, match="metadata.json"):
        await read_build_metadata(tmp_path / "metadata.json")
