"""Fixtures for depot-build tests."""

from pathlib import Path

import pytest

from depot_build.config import METADATA_FILE, SBOM_DIR_NAME
from depot_build.executor import ExecResult, Executor
from depot_build.invocation import Invocation
from depot_build.request import Secret

TESTDATA_DIR = Path(__file__).parent / "testdata"
BUILD_METADATA = TESTDATA_DIR / "build-metadata.json"
BAKE_METADATA = TESTDATA_DIR / "bake-metadata.json"

TEST_TOKEN = "depot-token-value"
TEST_PROJECT = "abc123"
TEST_VERSION = "2.76.0"


class FakeExecutor(Executor):
    """Executor that writes canned depot outputs instead of running a container."""

    def __init__(
        self, metadata: str | None = None, sboms: dict[str, str] | None = None
    ) -> None:
        self.metadata = metadata
        self.sboms = sboms or {}
        self.invocations: list[Invocation] = []

    async def execute(self, invocation: Invocation) -> ExecResult:
        self.invocations.append(invocation)
        directory = invocation.source_directory
        if self.metadata is not None:
            (directory / METADATA_FILE).write_text(self.metadata)
        for name, content in self.sboms.items():
            sbom_path = directory / SBOM_DIR_NAME / name
            sbom_path.parent.mkdir(parents=True, exist_ok=True)
            sbom_path.write_text(content)
        return ExecResult(directory=directory, workdir=invocation.workdir)


@pytest.fixture(name="token")
def token_fixture() -> Secret:
    return Secret(TEST_TOKEN)


@pytest.fixture(name="build_metadata")
def build_metadata_fixture() -> str:
    return BUILD_METADATA.read_text()


@pytest.fixture(name="bake_metadata")
def bake_metadata_fixture() -> str:
    return BAKE_METADATA.read_text()
