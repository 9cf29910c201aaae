"""Depot-build version action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)

from depot_build.version import resolve_version


class VersionAction:
    """Print the depot CLI version that builds would use."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args: ArgumentParser = subparsers.add_parser(
            "version",
            help="Print the depot CLI version",
            description="Resolves the latest depot CLI release for this host.",
        )
        args.add_argument(
            "--depot-version",
            default=None,
            help="Explicit version, printed unchanged",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        depot_version: str | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        print(await resolve_version(depot_version))
