"""Builds the container invocation that runs the depot CLI.

An invocation is everything needed to run depot in a container: the CLI
image, its arguments, plain and secret environment variables, the mounted
source directory and an optional container engine socket. Building one is
pure; nothing is executed until it is handed to an `Executor`.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from urllib.parse import urlparse

from .config import (
    CONTAINER_DOCKER_SOCKET,
    DEFAULT_DOCKER_HOST,
    DEPOT_DISABLE_OTEL_ENV,
    DEPOT_PROJECT_ENV,
    DEPOT_TOKEN_ENV,
    DOCKER_HOST_ENV,
    MOUNT_PATH,
    cli_image,
)
from .exceptions import InputException
from .request import BakeRequest, BuildRequest, Secret

__all__ = [
    "Invocation",
    "build_invocation",
    "bake_invocation",
]

_LOGGER = logging.getLogger(__name__)

UNIX_SCHEME = "unix"
TCP_SCHEME = "tcp"


@dataclass(frozen=True, kw_only=True)
class Invocation:
    """A single run of the depot CLI in a container."""

    image: str
    """Image containing the depot CLI."""

    args: list[str]
    """Command to run, bypassing the image entrypoint."""

    env: dict[str, str] = field(default_factory=dict)
    """Plain environment variables."""

    secret_env: dict[str, Secret] = field(default_factory=dict)
    """Environment variables whose values are withheld from logs."""

    mounts: dict[Path, str] = field(default_factory=dict)
    """Host directories mounted into the container."""

    workdir: str = MOUNT_PATH
    """Working directory inside the container."""

    sockets: dict[Path, str] = field(default_factory=dict)
    """Host unix sockets attached into the container."""

    @property
    def source_directory(self) -> Path:
        """Return the host directory mounted at the working directory."""
        for host_path, container_path in self.mounts.items():
            if container_path == self.workdir:
                return host_path
        raise InputException(f"No directory mounted at {self.workdir}")


def _docker_host_wiring(docker_host: str) -> tuple[dict[str, str], dict[Path, str]]:
    """Return the env and socket attachments for a container engine address."""
    address = docker_host or DEFAULT_DOCKER_HOST
    parsed = urlparse(address)
    if parsed.scheme == UNIX_SCHEME:
        if parsed.netloc or not parsed.path:
            raise InputException(
                f"Docker host '{address}' must name an absolute socket path"
            )
        return (
            {DOCKER_HOST_ENV: f"{UNIX_SCHEME}://{CONTAINER_DOCKER_SOCKET}"},
            {Path(parsed.path): CONTAINER_DOCKER_SOCKET},
        )
    if parsed.scheme == TCP_SCHEME:
        return ({DOCKER_HOST_ENV: address}, {})
    raise InputException(
        f"Unsupported docker host '{address}', expected unix:// or tcp://"
    )


def _invocation(
    request: BuildRequest | BakeRequest, version: str, args: list[str]
) -> Invocation:
    env = {
        DEPOT_PROJECT_ENV: request.project,
        DEPOT_DISABLE_OTEL_ENV: "true",
    }
    # Socket and host env are part of the invocation before it is executed
    docker_env, sockets = _docker_host_wiring(request.docker_host)
    env.update(docker_env)
    return Invocation(
        image=cli_image(version),
        args=args,
        env=env,
        secret_env={DEPOT_TOKEN_ENV: request.token},
        mounts={request.directory.resolve(): MOUNT_PATH},
        workdir=MOUNT_PATH,
        sockets=sockets,
    )


def build_invocation(request: BuildRequest, version: str) -> Invocation:
    """Return the invocation for a depot build."""
    return _invocation(request, version, request.args)


def bake_invocation(request: BakeRequest, version: str) -> Invocation:
    """Return the invocation for a depot bake."""
    return _invocation(request, version, request.args)
