"""Tests for command library."""

import asyncio
from pathlib import Path

import pytest

from depot_build.command import Command, run, run_piped
from depot_build.exceptions import CommandException, ExecutionError


async def test_command() -> None:
    """Test stdout parsing of a command."""
    result = await run(Command(["echo", "Hello"]))
    assert result == "Hello\n"


async def test_run_piped_command() -> None:
    """Test running commands piped together."""
    result = await run_piped(
        [
            Command(["echo", "Hello"]),
            Command(["sed", "s/Hello/Goodbye/"]),
        ]
    )
    assert result == "Goodbye\n"


async def test_command_stdin() -> None:
    """Test passing stdin to the first command."""
    result = await run(Command(["cat"]), stdin=b"password")
    assert result == "password"


async def test_failed_command() -> None:
    """Test a failing command."""
    with pytest.raises(CommandException, match="return code 1"):
        await run(Command(["/bin/false"]))


async def test_failed_command_exception_type() -> None:
    """Test a failing command raises the configured exception."""
    with pytest.raises(ExecutionError, match="return code 3"):
        await run(Command(["sh", "-c", "echo oops >&2; exit 3"], exc=ExecutionError))


async def test_failed_command_output() -> None:
    """Test that command output is passed through in the error."""
    with pytest.raises(CommandException) as exc_info:
        await run(Command(["sh", "-c", "echo failed to solve >&2; exit 1"]))
    assert "failed to solve" in str(exc_info.value)


async def test_command_env() -> None:
    """Test environment variables are passed to the command."""
    result = await run(
        Command(["sh", "-c", "echo $DEPOT_TEST_VALUE"], env={"DEPOT_TEST_VALUE": "abc"})
    )
    assert result == "abc\n"


async def test_command_env_not_rendered() -> None:
    """Test environment values do not appear in errors."""
    cmd = Command(["/bin/false"], env={"DEPOT_TEST_SECRET": "s3cr3t-value"})
    assert "s3cr3t-value" not in str(cmd)
    with pytest.raises(CommandException) as exc_info:
        await run(cmd)
    assert "s3cr3t-value" not in str(exc_info.value)


async def test_command_timeout() -> None:
    """Test a command that exceeds its timeout."""
    with pytest.raises(CommandException, match="timed out"):
        await run(Command(["sleep", "5"], timeout=0.1))


async def test_command_timeout_kills_process(tmp_path: Path) -> None:
    """Test a command that exceeds its timeout does not keep running."""
    marker = tmp_path / "finished"
    with pytest.raises(CommandException, match="timed out"):
        await run(Command(["sh", "-c", f"sleep 1; touch {marker}"], timeout=0.2))
    await asyncio.sleep(1.5)
    assert not marker.exists()
