#!/usr/bin/env python3
"""
Command line interface for gridrunner.

- ``run``: run the profile matrix for the discovered tests
- ``profiles``: show the profiles a run would schedule
- ``discover``: list the tests a run would use
"""

import asyncio
import sys
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from gridrunner.core import toolchain
from gridrunner.core.commands import CommandBuilder
from gridrunner.core.config import MatrixConfig, RunnerSettings, build_config
from gridrunner.core.discovery import discover_tests
from gridrunner.core.errors import ConfigurationError
from gridrunner.core.logging import configure_logging
from gridrunner.core.runner import MatrixRunner
from gridrunner.core.scheduler import ProfileQueue, profiles_for_tests

console = Console()


def _settings(**overrides: object) -> RunnerSettings:
    """Settings from the environment, with explicit CLI values on top."""
    values = {key: value for key, value in overrides.items() if value is not None}
    return RunnerSettings(**values)  # type: ignore[arg-type]


def _config(settings: RunnerSettings) -> MatrixConfig:
    detected = None
    if not settings.toolchain_version:
        detected = toolchain.toolchain_version()
        if detected is None:
            logger.warning("Could not detect the toolchain version; assuming the latest")
    try:
        return build_config(settings, detected_version=detected)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """
    gridrunner: run every test under a matrix of compiler configurations.

    Results are drawn as a table while the run progresses; a failure that
    the outcome policy considers fatal ends the run with exit code 1.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    settings = _settings()
    level = "DEBUG" if verbose else settings.log_level
    configure_logging(level, debug_scopes=settings.log_debug_scopes)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--directory",
    "-d",
    default="tests",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory searched for t*.nim tests",
)
@click.option("--ci/--no-ci", default=None, help="Run the expanded CI matrix")
@click.option(
    "--fail-fast/--no-fail-fast", default=None, help="Stop on CI failures"
)
@click.option("--toolchain-version", help="Toolchain version (X.Y)")
@click.option("--color/--no-color", default=None, help="Style the results table")
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx: click.Context,
    directory: str,
    ci: bool | None,
    fail_fast: bool | None,
    toolchain_version: str | None,
    color: bool | None,
    extra: tuple[str, ...],
) -> None:
    """Run the profile matrix; EXTRA arguments are passed to the compiler."""
    settings = _settings(
        ci=ci,
        fail_fast=fail_fast,
        toolchain_version=toolchain_version,
        color=color,
        extra_args=extra or None,
    )
    config = _config(settings)

    tests = discover_tests(directory)
    if not tests:
        logger.warning("No tests found")

    runner = MatrixRunner(
        config,
        run_external=toolchain.run_external,
        describe_toolchain=toolchain.describe_toolchain,
    )
    exit_code = asyncio.run(runner.run(tests))
    ctx.exit(exit_code)


@cli.command()
@click.option(
    "--directory",
    "-d",
    default="tests",
    show_default=True,
    type=click.Path(file_okay=False),
)
@click.option("--ci/--no-ci", default=None, help="Show the expanded CI matrix")
@click.option("--toolchain-version", help="Toolchain version (X.Y)")
def profiles(directory: str, ci: bool | None, toolchain_version: str | None) -> None:
    """Show the profiles a run would schedule, in priority order."""
    settings = _settings(ci=ci, toolchain_version=toolchain_version)
    config = _config(settings)
    builder = CommandBuilder(config)
    queue = ProfileQueue(profiles_for_tests(discover_tests(directory), config))

    table = Table(title=f"Profiles (nim-{config.version_label})")
    table.add_column("Test", style="cyan")
    table.add_column("Backend")
    table.add_column("Memory")
    table.add_column("Optimizer")
    table.add_column("Cache key", style="dim")
    for profile in queue.drain():
        table.add_row(
            profile.test,
            profile.backend.label,
            profile.memory.label,
            profile.optimizer.label,
            builder.shared_resource_key(profile),
        )
    console.print(table)


@cli.command()
@click.option(
    "--directory",
    "-d",
    default="tests",
    show_default=True,
    type=click.Path(file_okay=False),
)
def discover(directory: str) -> None:
    """List the tests a run would use, most recently changed first."""
    tests = discover_tests(directory)
    if not tests:
        console.print("[yellow]No tests found[/yellow]")
        return
    for test in tests:
        console.print(str(Path(test)), markup=False, highlight=False)


def main() -> None:
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
