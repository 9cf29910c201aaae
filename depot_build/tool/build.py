"""Depot-build build action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
import logging
import pathlib

import aiofiles

from depot_build import depot
from depot_build.exceptions import ImageTooLargeError
from depot_build.request import BuildRequest

from . import common
from .format import formatter

_LOGGER = logging.getLogger(__name__)


class BuildAction:
    """Depot-build build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args: ArgumentParser = subparsers.add_parser(
            "build",
            help="Build an image from a Dockerfile",
            description="""Builds a container image with depot and prints the
                resulting image reference and its compressed size.""",
        )
        common.add_common_flags(args)
        args.add_argument(
            "--file",
            "-f",
            dest="dockerfile",
            default="Dockerfile",
            help="Path to the Dockerfile, relative to the build context",
        )
        args.add_argument(
            "--platform",
            dest="platforms",
            action="append",
            default=[],
            help="Platform to build for, may be repeated",
        )
        args.add_argument(
            "--tag",
            "-t",
            dest="tags",
            action="append",
            default=[],
            help="Tag to apply to the image, may be repeated",
        )
        args.add_argument(
            "--build-arg",
            dest="build_args",
            action="append",
            default=[],
            help="Build time variable as KEY=value, may be repeated",
        )
        args.add_argument(
            "--label",
            dest="labels",
            action="append",
            default=[],
            help="Image label as KEY=value, may be repeated",
        )
        args.add_argument(
            "--output",
            dest="outputs",
            action="append",
            default=[],
            help="Output destination overriding the default, may be repeated",
        )
        args.add_argument(
            "--max-bytes",
            type=int,
            default=None,
            help="Fail when the built image is larger than this many bytes",
        )
        args.add_argument(
            "--sbom-file",
            type=pathlib.Path,
            default=None,
            help="Write the SBOM of the image to this file, requires --sbom",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        project: str,
        token_env: str,
        depot_version: str | None,
        docker_host: str,
        docker_bin: str,
        sbom: bool,
        no_cache: bool,
        no_save: bool,
        lint: bool,
        provenance: str,
        output_format: str,
        dockerfile: str,
        platforms: list[str],
        tags: list[str],
        build_args: list[str],
        labels: list[str],
        outputs: list[str],
        max_bytes: int | None,
        sbom_file: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        request = BuildRequest(
            token=common.token(token_env),
            project=project,
            directory=path,
            dockerfile=dockerfile,
            platforms=tuple(platforms),
            tags=tuple(tags),
            build_args=tuple(build_args),
            labels=tuple(labels),
            outputs=tuple(outputs),
            provenance=provenance,
            sbom=sbom,
            no_cache=no_cache,
            no_save=no_save,
            lint=lint,
            depot_version=depot_version,
            docker_host=docker_host,
        )
        artifact = await depot.build(request, executor=common.executor(docker_bin))

        if sbom_file is not None:
            async with aiofiles.open(sbom_file, "w") as out:
                await out.write(await artifact.sbom())
            _LOGGER.info("Wrote SBOM to %s", sbom_file)

        formatter(output_format).print([artifact.summary()])

        if max_bytes is not None and artifact.image_bytes > max_bytes:
            raise ImageTooLargeError(
                f"image is too large: {artifact.image_bytes} bytes"
            )
