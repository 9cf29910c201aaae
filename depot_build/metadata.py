"""Representation of the metadata file written by the depot CLI.

The depot CLI writes a JSON metadata file after a build with the image name,
the manifest list descriptor and the manifest of every platform that was
built. A bake writes the same object once per target, keyed by target name,
alongside a single `depot.build` object identifying the build.

```python
from depot_build.metadata import parse_build_metadata

metadata = parse_build_metadata(content)
print(f"Built {metadata.image_name} ({metadata.size} bytes)")
```
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any

import aiofiles
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import DecodeError, NotFoundError

__all__ = [
    "OCIDescriptor",
    "Manifest",
    "DepotBuild",
    "BuildMetadata",
    "BakeMetadata",
    "parse_build_metadata",
    "parse_bake_metadata",
    "read_build_metadata",
    "read_bake_metadata",
]

_LOGGER = logging.getLogger(__name__)

DEPOT_BUILD_KEY = "depot.build"
"""Reserved top level key holding the build identifiers.

A bake target named exactly `depot.build` can't be told apart from this key
and is always read as the build identifiers.
"""


@dataclass(frozen=True)
class BaseMetadata(DataClassDictMixin):
    """Base class for all metadata objects."""

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass(frozen=True)
class OCIDescriptor(BaseMetadata):
    """A content addressed blob such as an image config or a layer."""

    media_type: str = field(default="", metadata=field_options(alias="mediaType"))
    """The media type of the referenced content."""

    digest: str = ""
    """The digest of the referenced content."""

    size: int = 0
    """Size in bytes of the referenced content."""

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise ValueError(f"Descriptor size must be an integer: {self.size!r}")


@dataclass(frozen=True)
class Manifest(BaseMetadata):
    """The manifest of a single platform variant of an image."""

    schema_version: int = field(
        default=0, metadata=field_options(alias="schemaVersion")
    )
    """Image manifest schema version."""

    media_type: str = field(default="", metadata=field_options(alias="mediaType"))
    """The media type of the manifest."""

    config: OCIDescriptor = field(default_factory=OCIDescriptor)
    """Descriptor of the image config."""

    layers: list[OCIDescriptor] = field(default_factory=list)
    """Descriptors of the image layers, in order."""

    @property
    def size(self) -> int:
        """Size of the image config and all layers."""
        return self.config.size + sum(layer.size for layer in self.layers)


@dataclass(frozen=True)
class DepotBuild(BaseMetadata):
    """Identifiers for a depot build."""

    build_id: str = field(default="", metadata=field_options(alias="buildID"))
    """The depot build id."""

    project_id: str = field(default="", metadata=field_options(alias="projectID"))
    """The depot project id."""


@dataclass(frozen=True)
class BuildMetadata(BaseMetadata):
    """Metadata for a single image build."""

    descriptor: OCIDescriptor = field(
        default_factory=OCIDescriptor,
        metadata=field_options(alias="containerimage.descriptor"),
    )
    """Descriptor of the image index (manifest list)."""

    depot_build: DepotBuild = field(
        default_factory=DepotBuild, metadata=field_options(alias=DEPOT_BUILD_KEY)
    )
    """Identifiers for the build."""

    image_name: str = field(default="", metadata=field_options(alias="image.name"))
    """Reference of the built image in the depot registry."""

    manifests: list[Manifest] = field(default_factory=list)
    """One manifest per platform that was built."""

    @property
    def size(self) -> int:
        """Return the size in bytes of the image.

        This is the sum of the index, the image configs and all layers. Layers
        are stored compressed in the registry so this is the compressed size;
        the uncompressed on-disk size is not available.
        """
        return self.descriptor.size + sum(
            manifest.size for manifest in self.manifests
        )


@dataclass(frozen=True)
class BakeMetadata:
    """Metadata for a bake of many targets."""

    depot_build: DepotBuild = field(default_factory=DepotBuild)
    """Identifiers for the build."""

    targets: dict[str, BuildMetadata] = field(default_factory=dict)
    """Metadata for each target, keyed by target name."""


def _load_object(content: str | bytes) -> dict[str, Any]:
    try:
        doc = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise DecodeError(f"Invalid metadata JSON: {err}") from err
    if not isinstance(doc, dict):
        raise DecodeError(f"Expected metadata JSON object, got {type(doc).__name__}")
    return doc


def _decode(cls: type[BaseMetadata], doc: Any, name: str) -> Any:
    """Decode a metadata object, wrapping any schema errors."""
    if not isinstance(doc, dict):
        raise DecodeError(
            f"Invalid metadata for '{name}': expected object, got {type(doc).__name__}"
        )
    try:
        return cls.from_dict(doc)
    except (
        MissingField,
        InvalidFieldValue,
        AttributeError,
        KeyError,
        TypeError,
        ValueError,
    ) as err:
        raise DecodeError(f"Invalid metadata for '{name}': {err}") from err


def parse_build_metadata(content: str | bytes) -> BuildMetadata:
    """Parse the metadata file of a single build."""
    return _decode(BuildMetadata, _load_object(content), "build")


def parse_bake_metadata(content: str | bytes) -> BakeMetadata:
    """Parse the metadata file of a bake.

    The top level object is split by key: the reserved `depot.build` key holds
    the build identifiers and every other key is a target name.
    """
    doc = _load_object(content)
    depot_build = DepotBuild()
    targets: dict[str, BuildMetadata] = {}
    for key, value in doc.items():
        if key == DEPOT_BUILD_KEY:
            depot_build = _decode(DepotBuild, value, key)
        else:
            targets[key] = _decode(BuildMetadata, value, key)
    _LOGGER.debug("Parsed bake metadata with targets: %s", list(targets))
    return BakeMetadata(depot_build=depot_build, targets=targets)


async def _read(path: Path) -> str:
    try:
        async with aiofiles.open(path) as metadata_file:
            return await metadata_file.read()
    except FileNotFoundError as err:
        raise NotFoundError(f"Metadata file not found: {path}") from err


async def read_build_metadata(path: Path) -> BuildMetadata:
    """Read and parse a build metadata file."""
    return parse_build_metadata(await _read(path))


async def read_bake_metadata(path: Path) -> BakeMetadata:
    """Read and parse a bake metadata file."""
    return parse_bake_metadata(await _read(path))
