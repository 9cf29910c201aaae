"""Configuration constants and objects for depot-build."""

from dataclasses import dataclass

__all__ = [
    "ExecutorConfig",
]

CLI_IMAGE_REPOSITORY = "public.ecr.aws/depot/cli"
"""Container image repository that publishes the depot CLI."""

DEPOT_BIN = "/usr/bin/depot"
"""Path to the depot CLI inside the CLI image."""

RELEASE_URL = "https://dl.depot.dev/cli/release/{os}/{arch}/latest"
"""Endpoint that reports the latest depot CLI release for a platform."""

MOUNT_PATH = "/mnt"
"""Where the source directory is mounted; also the working directory."""

METADATA_FILE = "metadata.json"
"""Metadata file written by depot, relative to the working directory."""

SBOM_DIR_NAME = "sboms"
SBOM_DIR = f"{MOUNT_PATH}/{SBOM_DIR_NAME}"
"""Directory the depot CLI downloads SBOM documents into."""

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
"""Container engine address used when a request does not name one."""

CONTAINER_DOCKER_SOCKET = "/var/run/docker.sock"
"""Path the container engine socket is attached at inside the container."""

REGISTRY_HOST = "registry.depot.dev"
REGISTRY_USERNAME = "x-token"

DEPOT_TOKEN_ENV = "DEPOT_TOKEN"
DEPOT_PROJECT_ENV = "DEPOT_PROJECT_ID"
DEPOT_DISABLE_OTEL_ENV = "DEPOT_DISABLE_OTEL"
DOCKER_HOST_ENV = "DOCKER_HOST"


def cli_image(version: str) -> str:
    """Return the CLI image reference for a depot version."""
    return f"{CLI_IMAGE_REPOSITORY}:{version}"


@dataclass
class ExecutorConfig:
    """Configuration for running the depot CLI container locally."""

    docker_bin: str = "docker"
    """Container engine CLI used to run the depot image."""

    timeout: float = 3600.0
    """Seconds to wait for a build before giving up."""
