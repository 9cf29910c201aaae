"""Library for building container images with depot (https://depot.dev).

Builds run the depot CLI in a container that mounts the source directory.
Once the CLI exits, the metadata file it wrote is decoded into an artifact:

```python
from depot_build import depot
from depot_build.request import BuildRequest, Secret

artifact = await depot.build(
    BuildRequest(token=Secret(token), project="abc123", directory=Path("."))
)
if artifact.image_bytes > max_bytes:
    raise ValueError(f"image is too large: {artifact.image_bytes} bytes")
await artifact.pull()
```

A bake builds many targets in one invocation:

```python
artifacts = await depot.bake(
    BakeRequest(
        token=Secret(token),
        project="abc123",
        directory=Path("."),
        bake_file="docker-bake.hcl",
    )
)
web = artifacts.target("web")
```
"""

import logging
from pathlib import Path
from shutil import rmtree

import httpx
from aiofiles.os import remove
from aiofiles.ospath import isdir, isfile, wrap

from .artifact import BakeArtifacts, BuildArtifact
from .config import METADATA_FILE, SBOM_DIR, SBOM_DIR_NAME
from .context import trace_context
from .executor import DockerExecutor, ExecResult, Executor
from .invocation import Invocation, bake_invocation, build_invocation
from .metadata import read_bake_metadata, read_build_metadata
from .request import BakeRequest, BuildRequest
from .version import resolve_version

__all__ = [
    "build",
    "bake",
]

_LOGGER = logging.getLogger(__name__)

_rmtree = wrap(rmtree)


async def _clear_outputs(directory: Path) -> None:
    """Remove outputs of an earlier run from the source directory."""
    metadata_file = directory / METADATA_FILE
    if await isfile(metadata_file):
        _LOGGER.debug("Removing stale %s", metadata_file)
        await remove(metadata_file)
    sbom_dir = directory / SBOM_DIR_NAME
    if await isdir(sbom_dir):
        _LOGGER.debug("Removing stale %s", sbom_dir)
        await _rmtree(sbom_dir)


async def _execute(invocation: Invocation, executor: Executor | None) -> ExecResult:
    await _clear_outputs(invocation.source_directory)
    with trace_context("execute"):
        return await (executor or DockerExecutor()).execute(invocation)


async def build(
    request: BuildRequest,
    executor: Executor | None = None,
    client: httpx.AsyncClient | None = None,
) -> BuildArtifact:
    """Build an image from a Dockerfile using depot."""
    with trace_context("build"):
        with trace_context("resolve-version"):
            version = await resolve_version(request.depot_version, client)
        invocation = build_invocation(request, version)
        result = await _execute(invocation, executor)
        with trace_context("read-metadata"):
            metadata = await read_build_metadata(result.path(METADATA_FILE))
        _LOGGER.info("Built image %s (%d bytes)", metadata.image_name, metadata.size)
        return BuildArtifact(
            token=request.token,
            project=request.project,
            metadata=metadata,
            sbom_dir=result.path(SBOM_DIR) if request.sbom else None,
        )


async def bake(
    request: BakeRequest,
    executor: Executor | None = None,
    client: httpx.AsyncClient | None = None,
) -> BakeArtifacts:
    """Build every target of a bake definition file using depot."""
    with trace_context("bake"):
        with trace_context("resolve-version"):
            version = await resolve_version(request.depot_version, client)
        invocation = bake_invocation(request, version)
        result = await _execute(invocation, executor)
        with trace_context("read-metadata"):
            metadata = await read_bake_metadata(result.path(METADATA_FILE))
        _LOGGER.info("Baked targets: %s", ", ".join(metadata.targets))
        return BakeArtifacts(
            token=request.token,
            project=request.project,
            metadata=metadata,
            sbom_dir=result.path(SBOM_DIR) if request.sbom else None,
        )
