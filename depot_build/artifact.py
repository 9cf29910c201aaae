"""Artifact representation of finished depot builds.

Artifacts are created once the depot CLI has exited successfully and its
metadata file has been decoded. They are never modified afterwards.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import aiofiles
from aiofiles.ospath import isdir, wrap

from . import command
from .config import REGISTRY_HOST, REGISTRY_USERNAME, ExecutorConfig
from .exceptions import ExecutionError, NotFoundError, TargetNotFoundError
from .metadata import BakeMetadata, BuildMetadata
from .request import Secret

__all__ = [
    "Auth",
    "BuildArtifact",
    "BakeArtifacts",
]

_LOGGER = logging.getLogger(__name__)


def _sorted_files(directory: Path) -> list[Path]:
    return sorted(path for path in directory.rglob("*") if path.is_file())


_list_files = wrap(_sorted_files)


@dataclass(frozen=True)
class Auth:
    """Registry credentials."""

    hostname: str
    username: str
    password: Secret


@dataclass(frozen=True, kw_only=True)
class BuildArtifact:
    """The image produced by a depot build."""

    token: Secret
    """Depot token, needed to pull the image."""

    project: str
    """Depot project id."""

    metadata: BuildMetadata
    """Decoded build metadata."""

    sbom_dir: Path | None = None
    """Host directory of SBOM documents, set only when SBOMs were requested."""

    @property
    def image_name(self) -> str:
        """Reference of the image in the depot registry."""
        return self.metadata.image_name

    @property
    def image_bytes(self) -> int:
        """Return the compressed size in bytes of the image."""
        return self.metadata.size

    @property
    def registry_auth(self) -> Auth:
        """Credentials for pulling the image from the depot registry."""
        return Auth(
            hostname=REGISTRY_HOST, username=REGISTRY_USERNAME, password=self.token
        )

    async def sbom_file(self) -> Path:
        """Return the first SBOM document produced by the build."""
        if self.sbom_dir is None or not await isdir(self.sbom_dir):
            raise NotFoundError("SBOM not generated; build with sbom enabled")
        files = await _list_files(self.sbom_dir)
        if not files:
            raise NotFoundError(f"No SBOMs found in {self.sbom_dir}")
        return files[0]

    async def sbom(self) -> str:
        """Return the contents of the first SBOM document."""
        path = await self.sbom_file()
        async with aiofiles.open(path) as sbom_file:
            return await sbom_file.read()

    async def pull(self, config: ExecutorConfig | None = None) -> None:
        """Pull the image into the local container engine."""
        config = config or ExecutorConfig()
        auth = self.registry_auth
        _LOGGER.info("Pulling image %s", self.image_name)
        await command.run(
            command.Command(
                [
                    config.docker_bin,
                    "login",
                    auth.hostname,
                    "--username",
                    auth.username,
                    "--password-stdin",
                ],
                exc=ExecutionError,
            ),
            stdin=auth.password.value.encode("utf-8"),
        )
        await command.run(
            command.Command(
                [config.docker_bin, "pull", self.image_name],
                exc=ExecutionError,
                timeout=config.timeout,
            )
        )

    def summary(self) -> dict[str, Any]:
        """Return a summary of the artifact for display."""
        return {
            "image": self.image_name,
            "bytes": self.image_bytes,
            "build_id": self.metadata.depot_build.build_id,
            "project_id": self.metadata.depot_build.project_id or self.project,
        }


@dataclass(frozen=True, kw_only=True)
class BakeArtifacts:
    """The images produced by a depot bake, one per target."""

    token: Secret
    """Depot token, needed to pull the images."""

    project: str
    """Depot project id."""

    metadata: BakeMetadata
    """Decoded bake metadata."""

    sbom_dir: Path | None = None
    """Host directory of per-target SBOM directories, set when requested."""

    @property
    def targets(self) -> list[str]:
        """Return the names of the targets that were built."""
        return list(self.metadata.targets)

    def target(self, name: str) -> BuildArtifact:
        """Return the artifact built for a target."""
        if (metadata := self.metadata.targets.get(name)) is None:
            raise TargetNotFoundError(name, self.targets)
        return BuildArtifact(
            token=self.token,
            project=self.project,
            metadata=metadata,
            sbom_dir=self.sbom_dir / name if self.sbom_dir is not None else None,
        )

    def artifacts(self) -> dict[str, BuildArtifact]:
        """Return the artifact of every target."""
        return {name: self.target(name) for name in self.targets}

    def summary(self) -> list[dict[str, Any]]:
        """Return a summary of each target for display."""
        return [
            {"target": name, **artifact.summary()}
            for name, artifact in self.artifacts().items()
        ]
