"""Flags shared by the depot-build commands."""

from argparse import ArgumentParser, BooleanOptionalAction
import os
import pathlib

from depot_build.config import DEFAULT_DOCKER_HOST, DEPOT_TOKEN_ENV, ExecutorConfig
from depot_build.executor import DockerExecutor, Executor
from depot_build.request import Secret

from .format import FORMATTERS

__all__ = [
    "add_common_flags",
    "token",
    "executor",
]


def add_common_flags(args: ArgumentParser) -> None:
    """Add flags shared by build and bake."""
    args.add_argument(
        "path",
        type=pathlib.Path,
        help="Source context directory for the build",
    )
    args.add_argument(
        "--project",
        required=True,
        help="Depot project id",
    )
    args.add_argument(
        "--token-env",
        default=DEPOT_TOKEN_ENV,
        help="Name of the environment variable holding the depot token",
    )
    args.add_argument(
        "--depot-version",
        default=None,
        help="Depot CLI version, defaults to the latest release",
    )
    args.add_argument(
        "--docker-host",
        default=DEFAULT_DOCKER_HOST,
        help="Local container engine address passed to depot (unix:// or tcp://)",
    )
    args.add_argument(
        "--docker-bin",
        default=ExecutorConfig.docker_bin,
        help="Container engine CLI used to run the depot CLI image",
    )
    args.add_argument(
        "--sbom",
        type=bool,
        action=BooleanOptionalAction,
        default=False,
        help="Produce a software bill of materials for each image",
    )
    args.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not use the layer cache when building",
    )
    args.add_argument(
        "--no-save",
        action="store_true",
        help="Do not save images to the depot ephemeral registry",
    )
    args.add_argument(
        "--lint",
        action="store_true",
        help="Lint Dockerfiles before building",
    )
    args.add_argument(
        "--provenance",
        default="",
        help="Provenance attestation setting passed to depot",
    )
    args.add_argument(
        "--output-format",
        choices=list(FORMATTERS),
        default="table",
        help="Output format of the command",
    )


def token(token_env: str) -> Secret:
    """Read the depot token from the environment."""
    return Secret(os.environ.get(token_env, ""))


def executor(docker_bin: str) -> Executor:
    """Return the executor used to run depot."""
    return DockerExecutor(ExecutorConfig(docker_bin=docker_bin))
