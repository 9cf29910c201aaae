"""Resolve the version of the depot CLI to run.

An explicit version is used as is. Otherwise the depot release endpoint is
queried for the latest release built for the host operating system and
architecture. Nothing is cached; every call without a version asks again.
"""

import json
import logging
import platform
import sys

import httpx

from .config import RELEASE_URL
from .exceptions import DecodeError, NetworkError

__all__ = [
    "resolve_version",
    "latest_version",
    "release_url",
]

_LOGGER = logging.getLogger(__name__)

_TIMEOUT = 30.0

# Map python platform names to the names used by depot release artifacts.
_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
}
_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
}


def host_os() -> str:
    """Return the release operating system name of this host."""
    return _OS_NAMES.get(sys.platform, sys.platform)


def host_arch() -> str:
    """Return the release architecture name of this host."""
    machine = platform.machine().lower()
    return _ARCH_NAMES.get(machine, machine)


def release_url(os_name: str | None = None, arch: str | None = None) -> str:
    """Return the latest release url for the platform, defaulting to this host."""
    return RELEASE_URL.format(os=os_name or host_os(), arch=arch or host_arch())


def _parse_version(content: bytes) -> str:
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise DecodeError(f"Invalid release response: {err}") from err
    if not isinstance(data, dict) or not isinstance(
        version := data.get("version"), str
    ):
        raise DecodeError(f"Release response missing version: {content!r}")
    return version


async def latest_version(client: httpx.AsyncClient | None = None) -> str:
    """Query the depot release endpoint for the latest CLI version."""
    url = release_url()
    _LOGGER.debug("Fetching latest depot version from %s", url)
    headers = {"Content-Type": "application/json"}
    try:
        if client is not None:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=_TIMEOUT) as new_client:
                response = await new_client.get(url, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as err:
        raise NetworkError(f"Unable to fetch latest depot version: {err}") from err
    version = _parse_version(response.content)
    _LOGGER.info("Using latest depot version %s", version)
    return version


async def resolve_version(
    version: str | None = None, client: httpx.AsyncClient | None = None
) -> str:
    """Return the depot version to run.

    A non-empty `version` is returned unchanged without validation.
    """
    if version:
        return version
    return await latest_version(client)
