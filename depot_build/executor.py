"""Executes a depot CLI invocation in a local container engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from pathlib import Path, PurePosixPath
import uuid

from . import command
from .config import ExecutorConfig
from .exceptions import ExecutionError
from .invocation import Invocation

__all__ = [
    "Executor",
    "ExecResult",
    "DockerExecutor",
]

_LOGGER = logging.getLogger(__name__)

_CONTAINER_PREFIX = "depot-build-"


@dataclass(frozen=True)
class ExecResult:
    """Handle on the outputs of a finished invocation."""

    directory: Path
    """Host directory mounted as the container working directory."""

    workdir: str
    """Working directory inside the container."""

    stdout: str = ""
    """Output of the depot CLI."""

    def path(self, container_path: str) -> Path:
        """Map a path inside the container to the host.

        Relative paths are relative to the working directory. Only paths under
        the working directory are visible on the host.
        """
        path = PurePosixPath(self.workdir) / container_path
        try:
            relative = path.relative_to(self.workdir)
        except ValueError as err:
            raise ExecutionError(
                f"Path {container_path} is outside of {self.workdir}"
            ) from err
        return self.directory.joinpath(*relative.parts)


class Executor(ABC):
    """Runs an invocation and returns a handle on its outputs."""

    @abstractmethod
    async def execute(self, invocation: Invocation) -> ExecResult:
        """Run the invocation, raising ExecutionError on failure."""


class DockerExecutor(Executor):
    """Runs invocations with `docker run`."""

    def __init__(self, config: ExecutorConfig | None = None) -> None:
        """Initialize DockerExecutor."""
        self._config = config or ExecutorConfig()

    def command(
        self, invocation: Invocation, container_name: str | None = None
    ) -> command.Command:
        """Return the command that runs the invocation.

        Secret values are passed through the environment of the docker
        process and referenced by name only, so they never appear in the
        command line.
        """
        args = [self._config.docker_bin, "run", "--rm"]
        if container_name:
            args.extend(["--name", container_name])
        args.extend(["--entrypoint", ""])
        for host_path, container_path in invocation.mounts.items():
            args.extend(["--volume", f"{host_path}:{container_path}"])
        for socket_path, container_path in invocation.sockets.items():
            args.extend(["--volume", f"{socket_path}:{container_path}"])
        args.extend(["--workdir", invocation.workdir])
        for name, value in invocation.env.items():
            args.extend(["--env", f"{name}={value}"])
        for name in invocation.secret_env:
            args.extend(["--env", name])
        args.append(invocation.image)
        args.extend(invocation.args)
        return command.Command(
            args,
            exc=ExecutionError,
            env={name: secret.value for name, secret in invocation.secret_env.items()},
            timeout=self._config.timeout,
        )

    async def execute(self, invocation: Invocation) -> ExecResult:
        """Run the invocation with docker."""
        container_name = f"{_CONTAINER_PREFIX}{uuid.uuid4().hex[:12]}"
        cmd = self.command(invocation, container_name)
        _LOGGER.info("Running %s in %s", invocation.args[1], invocation.image)
        try:
            stdout = await command.run(cmd)
        except ExecutionError as err:
            if isinstance(err.__cause__, TimeoutError):
                await self._remove(container_name)
            raise
        return ExecResult(
            directory=invocation.source_directory,
            workdir=invocation.workdir,
            stdout=stdout,
        )

    async def _remove(self, name: str) -> None:
        """Remove a container left running by a killed `docker run`."""
        _LOGGER.info("Removing container %s", name)
        try:
            await command.run(
                command.Command(
                    [self._config.docker_bin, "rm", "--force", name],
                    exc=ExecutionError,
                )
            )
        except ExecutionError as err:
            _LOGGER.warning("Failed to remove container %s: %s", name, err)
