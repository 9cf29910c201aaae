"""Depot-build bake action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
import logging
import pathlib

from depot_build import depot
from depot_build.request import BakeRequest

from . import common
from .format import formatter

_LOGGER = logging.getLogger(__name__)


class BakeAction:
    """Depot-build bake action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args: ArgumentParser = subparsers.add_parser(
            "bake",
            help="Build many images from a bake definition file",
            description="""Builds every target in a bake file with depot and
                prints one image per target.""",
        )
        common.add_common_flags(args)
        args.add_argument(
            "--bake-file",
            "-f",
            required=True,
            help="Path to the bake definition file, relative to the build context",
        )
        args.add_argument(
            "targets",
            nargs="*",
            default=[],
            help="Targets to build, defaults to all targets",
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
        bake_file: str,
        targets: list[str],
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        request = BakeRequest(
            token=common.token(token_env),
            project=project,
            directory=path,
            bake_file=bake_file,
            targets=tuple(targets),
            provenance=provenance,
            sbom=sbom,
            no_cache=no_cache,
            no_save=no_save,
            lint=lint,
            depot_version=depot_version,
            docker_host=docker_host,
        )
        artifacts = await depot.bake(request, executor=common.executor(docker_bin))
        formatter(output_format).print(artifacts.summary())
