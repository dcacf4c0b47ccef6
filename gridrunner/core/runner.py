"""
Orchestration of a complete matrix run.

``MatrixRunner`` wires the results matrix, reporter, command builder,
outcome policy and execution engine together, turns the outcome into an exit
code and performs the single diagnostic re-run when a fatal failure ends the
run.
"""

from __future__ import annotations

import asyncio
import shutil
import sys
from collections.abc import Awaitable, Callable, Iterable

from loguru import logger

from gridrunner.core import toolchain
from gridrunner.core.commands import CommandBuilder
from gridrunner.core.config import MatrixConfig
from gridrunner.core.engine import ExecutionEngine
from gridrunner.core.errors import FatalRunError
from gridrunner.core.policy import OutcomePolicy
from gridrunner.core.reporter import MatrixReporter
from gridrunner.core.scheduler import profiles_for_tests
from gridrunner.datastructures.matrix import ResultsMatrix
from gridrunner.datastructures.profile import Profile, StatusKind
from gridrunner.datastructures.type_aliases import ExitCode, RunExternal, TestPath

EXIT_SUCCESS: ExitCode = 0
EXIT_FAILURE: ExitCode = 1

type DescribeToolchain = Callable[[], Awaitable[ExitCode]]


class MatrixRunner:
    """Runs every profile for a list of tests and reports the outcome."""

    def __init__(
        self,
        config: MatrixConfig,
        *,
        run_external: RunExternal = toolchain.run_external,
        command_builder: CommandBuilder | None = None,
        policy: OutcomePolicy | None = None,
        reporter: MatrixReporter | None = None,
        matrix: ResultsMatrix | None = None,
        describe_toolchain: DescribeToolchain | None = None,
        remove_caches: bool = True,
    ) -> None:
        self.config = config
        self.builder = command_builder or CommandBuilder(config)
        self.policy = policy or OutcomePolicy.from_config(config)
        self.reporter = reporter or MatrixReporter(
            version_label=config.version_label, color=config.color
        )
        self.matrix = matrix if matrix is not None else ResultsMatrix()
        self.matrix.subscribe(self.reporter)
        self.describe_toolchain = describe_toolchain
        self.remove_caches = remove_caches
        self.engine = ExecutionEngine(
            self.matrix,
            render_command=self.builder,
            run_external=run_external,
            resource_key=self.builder.shared_resource_key,
            policy=self.policy,
            reporter=self.reporter,
            poll_interval=config.poll_interval,
        )

    def profiles(self, tests: Iterable[TestPath]) -> list[Profile]:
        return profiles_for_tests(tests, self.config)

    def first_fatal_failure(self) -> Profile | None:
        for profile, status in self.matrix.items():
            if self.policy.is_fatal(profile, status):
                return profile
        return None

    async def run(self, tests: Iterable[TestPath]) -> ExitCode:
        """Run the matrix for ``tests`` and return the process exit code."""
        profiles = self.profiles(tests)
        logger.info(
            "Scheduling {} profiles on nim-{}{}",
            len(profiles),
            self.config.version_label,
            " (ci)" if self.config.ci else "",
        )
        try:
            try:
                await self.engine.perform(profiles)
            except FatalRunError as error:
                logger.error("Fatal failure: {}", error.profile)
                return await self.fail(error.profile)

            failure = self.first_fatal_failure()
            if failure is not None:
                return await self.fail(failure)
            return EXIT_SUCCESS
        finally:
            self.cleanup()

    async def fail(self, profile: Profile) -> ExitCode:
        """Diagnose a fatal failure of ``profile`` and return the exit code."""
        diagnostic = profile.with_optimizer(self.config.least_aggressive)
        if diagnostic not in self.matrix:
            logger.info("Diagnostic re-run of {}", diagnostic)
            await self.engine.attempt(diagnostic)
            # recording the diagnostic redraws the table
            self.matrix[diagnostic] = StatusKind.INFO
        else:
            self.reporter.show(self.matrix)

        self.reporter.checkpoint(self.builder.render(profile))
        self.reporter.checkpoint("failure; compiler:")
        # hope we beat the compiler's --version
        sys.stderr.flush()
        if self.describe_toolchain is not None:
            await self.describe_toolchain()
        return EXIT_FAILURE

    def cleanup(self) -> None:
        """Remove the cache directories of every profile in the matrix."""
        if not self.remove_caches:
            return
        for directory in {self.builder.cache_dir(profile) for profile in self.matrix}:
            shutil.rmtree(directory, ignore_errors=True)


def run_matrix(
    tests: Iterable[TestPath],
    config: MatrixConfig,
    **runner_options: object,
) -> ExitCode:
    """Synchronous entry point around ``MatrixRunner.run``."""
    runner = MatrixRunner(config, **runner_options)  # type: ignore[arg-type]
    return asyncio.run(runner.run(list(tests)))
