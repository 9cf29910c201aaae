"""Requests describing a depot build or bake.

Requests are immutable and resolved once when constructed: optional values
carry their defaults here instead of being threaded through as `None`.
"""

from dataclasses import dataclass, field
from pathlib import Path

from .config import DEFAULT_DOCKER_HOST, DEPOT_BIN, METADATA_FILE, SBOM_DIR
from .exceptions import InputException

__all__ = [
    "Secret",
    "BuildRequest",
    "BakeRequest",
]


class Secret:
    """A sensitive string value that is never rendered in logs or output."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        """Initialize Secret."""
        self._value = value

    @property
    def value(self) -> str:
        """Return the plaintext value."""
        return self._value

    def __repr__(self) -> str:
        return "Secret(***)"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return bool(self._value)


def _sbom_args() -> list[str]:
    """Produce SBOMs and download them where the artifact can find them."""
    return ["--sbom=true", f"--sbom-dir={SBOM_DIR}"]


def _check_common(token: Secret, project: str) -> None:
    if not token:
        raise InputException("A depot token is required")
    if not project:
        raise InputException("A depot project id is required")


@dataclass(frozen=True, kw_only=True)
class BuildRequest:
    """Parameters for building one image from a Dockerfile."""

    token: Secret
    """Depot token."""

    project: str
    """Depot project id."""

    directory: Path
    """Source context directory for the build."""

    dockerfile: str = "Dockerfile"
    """Path to the Dockerfile, omitted from the command when empty."""

    platforms: tuple[str, ...] = ()
    """Platforms (os/arch) to build the image for."""

    tags: tuple[str, ...] = ()
    """Tags to apply to the image."""

    build_args: tuple[str, ...] = ()
    """Build time variables as `KEY=value`."""

    labels: tuple[str, ...] = ()
    """Labels to apply to the image as `KEY=value`."""

    outputs: tuple[str, ...] = ()
    """Output destinations overriding the default."""

    provenance: str = ""
    """Provenance attestation setting, omitted when empty."""

    sbom: bool = False
    """Produce a software bill of materials for the image."""

    no_cache: bool = False
    """Do not use the layer cache."""

    no_save: bool = False
    """Do not save the image to the depot ephemeral registry."""

    lint: bool = False
    """Lint the Dockerfile."""

    depot_version: str | None = None
    """Depot CLI version, the latest release when unset."""

    docker_host: str = DEFAULT_DOCKER_HOST
    """Local container engine address wired into the build container."""

    def __post_init__(self) -> None:
        _check_common(self.token, self.project)

    @property
    def args(self) -> list[str]:
        """Depot CLI arguments built from the request."""
        args = [DEPOT_BIN, "build", ".", f"--metadata-file={METADATA_FILE}"]
        # Always save unless asked not to, the artifact is pulled from the registry
        if not self.no_save:
            args.append("--save")
        for platform in self.platforms:
            args.extend(["--platform", platform])
        for tag in self.tags:
            args.extend(["--tag", tag])
        for build_arg in self.build_args:
            args.extend(["--build-arg", build_arg])
        for label in self.labels:
            args.extend(["--label", label])
        for output in self.outputs:
            args.extend(["--output", output])
        if self.dockerfile:
            args.extend(["--file", self.dockerfile])
        if self.provenance:
            args.extend(["--provenance", self.provenance])
        if self.sbom:
            args.extend(_sbom_args())
        if self.no_cache:
            args.append("--no-cache")
        if self.lint:
            args.append("--lint")
        return args


@dataclass(frozen=True, kw_only=True)
class BakeRequest:
    """Parameters for building many images from a bake definition file."""

    token: Secret
    """Depot token."""

    project: str
    """Depot project id."""

    directory: Path
    """Source context directory for the build."""

    bake_file: str
    """Path to the bake definition file."""

    targets: tuple[str, ...] = field(default=())
    """Targets to build, every target in the file when empty."""

    provenance: str = ""
    """Provenance attestation setting, omitted when empty."""

    sbom: bool = False
    """Produce a software bill of materials for each image."""

    no_cache: bool = False
    """Do not use the layer cache."""

    no_save: bool = False
    """Do not save the images to the depot ephemeral registry."""

    lint: bool = False
    """Lint the Dockerfiles."""

    depot_version: str | None = None
    """Depot CLI version, the latest release when unset."""

    docker_host: str = DEFAULT_DOCKER_HOST
    """Local container engine address wired into the build container."""

    def __post_init__(self) -> None:
        _check_common(self.token, self.project)
        if not self.bake_file:
            raise InputException("A bake definition file is required")

    @property
    def args(self) -> list[str]:
        """Depot CLI arguments built from the request."""
        args = [
            DEPOT_BIN,
            "bake",
            "-f",
            self.bake_file,
            f"--metadata-file={METADATA_FILE}",
        ]
        if not self.no_save:
            args.append("--save")
        if self.sbom:
            args.extend(_sbom_args())
        if self.no_cache:
            args.append("--no-cache")
        if self.lint:
            args.append("--lint")
        if self.provenance:
            args.extend(["--provenance", self.provenance])
        args.extend(self.targets)
        return args
