"""Running toolchain commands."""

from __future__ import annotations

import asyncio
import subprocess

from loguru import logger

from gridrunner.core.errors import ConfigurationError
from gridrunner.core.generations import parse_version
from gridrunner.datastructures.type_aliases import (
    CommandLine,
    ExitCode,
    ToolchainVersion,
)

LAUNCH_FAILURE_EXIT_CODE: ExitCode = 1


async def run_external(command: CommandLine) -> ExitCode:
    """Run ``command`` in a shell and return its exit code.

    Output is captured and logged only when the command fails. A command that
    cannot be launched at all counts as a failure instead of raising.
    """
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.error("{}: {}", type(e).__name__, e)
        return LAUNCH_FAILURE_EXIT_CODE

    try:
        output, _ = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
        raise

    returncode = process.returncode
    if returncode is None:
        return LAUNCH_FAILURE_EXIT_CODE
    if returncode != 0:
        text = output.decode("utf-8", errors="replace") if output else ""
        logger.warning("$ {}\n{}", command, text.rstrip())
    return returncode


def toolchain_version(compiler: str = "nim") -> ToolchainVersion | None:
    """Ask ``compiler --version`` for its version, or None if unavailable."""
    try:
        completed = subprocess.run(
            [compiler, "--version"],
            check=False,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Could not query {} version: {}", compiler, e)
        return None
    for line in completed.stdout.splitlines():
        if "Version" not in line:
            continue
        try:
            return parse_version(line.split("Version", 1)[1])
        except ConfigurationError:
            continue
    return None


async def describe_toolchain(compiler: str = "nim") -> ExitCode:
    """Print the compiler banner straight to the terminal."""
    try:
        process = await asyncio.create_subprocess_exec(compiler, "--version")
        return await process.wait()
    except OSError as e:
        logger.error("{}: {}", type(e).__name__, e)
        return LAUNCH_FAILURE_EXIT_CODE
