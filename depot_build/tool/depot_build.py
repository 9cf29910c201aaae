"""Command line tool for building container images with depot."""

import argparse
import asyncio
import logging
import sys
import traceback

from depot_build.exceptions import DepotException
from . import bake, build, version

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for building images with depot.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    build.BuildAction.register(subparsers)
    bake.BakeAction.register(subparsers)
    version.VersionAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Depot-build command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except DepotException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("depot-build error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
