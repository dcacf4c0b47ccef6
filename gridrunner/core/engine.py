"""
The execution engine.

``ExecutionEngine.perform`` pre-registers a matrix slot for every profile,
pops profiles loosest-first, records dominated ones as skipped and launches a
worker task for the rest. Workers serialize on a lock per shared resource
key (the compiler cache directory) while the toolchain runs, then write their
own matrix slot. The engine polls the workers until they finish, redrawing
the table whenever the number of running workers changes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from loguru import logger

from gridrunner.core.errors import FatalRunError
from gridrunner.core.policy import OutcomePolicy
from gridrunner.core.reporter import MatrixReporter
from gridrunner.core.scheduler import ProfileQueue, lesser_profile_failed
from gridrunner.core.task_manager import WorkerGroup
from gridrunner.datastructures.matrix import ResultsMatrix
from gridrunner.datastructures.profile import Profile, StatusKind
from gridrunner.datastructures.type_aliases import (
    CommandLine,
    DurationSeconds,
    ExitCode,
    ResourceKey,
    RunExternal,
)

DEFAULT_POLL_INTERVAL: DurationSeconds = 0.25

type RenderCommand = Callable[[Profile], CommandLine]
type ResourceKeyFor = Callable[[Profile], ResourceKey]


def status_for(exit_code: ExitCode) -> StatusKind:
    return StatusKind.PASS if exit_code == 0 else StatusKind.FAIL


class ExecutionEngine:
    """Runs profiles concurrently and records their outcomes."""

    def __init__(
        self,
        matrix: ResultsMatrix,
        *,
        render_command: RenderCommand,
        run_external: RunExternal,
        resource_key: ResourceKeyFor,
        policy: OutcomePolicy,
        reporter: MatrixReporter | None = None,
        poll_interval: DurationSeconds = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.matrix = matrix
        self.render_command = render_command
        self.run_external = run_external
        self.resource_key = resource_key
        self.policy = policy
        self.reporter = reporter
        self.poll_interval = poll_interval
        self.locks: dict[ResourceKey, asyncio.Lock] = {}

    def prepare(self, profiles: Sequence[Profile]) -> None:
        """Reserve matrix slots and resource locks before any worker starts."""
        for profile in profiles:
            # register() does not notify, so this does not redraw the table
            self.matrix.register(profile)
            key = self.resource_key(profile)
            if key not in self.locks:
                self.locks[key] = asyncio.Lock()

    def lock_for(self, profile: Profile) -> asyncio.Lock:
        key = self.resource_key(profile)
        lock = self.locks.get(key)
        if lock is None:
            lock = self.locks[key] = asyncio.Lock()
        return lock

    async def attempt(self, profile: Profile) -> tuple[CommandLine, StatusKind]:
        """Run ``profile`` under its resource lock without touching the matrix."""
        command = self.render_command(profile)
        async with self.lock_for(profile):
            logger.debug("$ {}", command)
            try:
                exit_code = await self.run_external(command)
            except OSError as e:
                logger.error("{}: {}", type(e).__name__, e)
                exit_code = 1
        return command, status_for(exit_code)

    async def _work(self, profile: Profile) -> StatusKind:
        command, status = await self.attempt(profile)
        self.matrix[profile] = status
        if self.policy.is_fatal(profile, status):
            raise FatalRunError(command, profile)
        return status

    def _render(self) -> None:
        if self.reporter is not None:
            self.reporter.show(self.matrix)

    def _checkpoint(self, message: str) -> None:
        if self.reporter is not None:
            self.reporter.checkpoint(message)

    async def perform(self, profiles: Sequence[Profile]) -> None:
        """Run ``profiles`` and return once every worker is done.

        Raises ``FatalRunError`` when a worker's failure is fatal; workers
        still running at that point are cancelled.
        """
        self.prepare(profiles)
        queue = ProfileQueue(profiles)
        workers = WorkerGroup("matrix")
        launched: set[Profile] = set()
        skipped = 0

        while queue:
            profile = queue.pop()
            # a listed duplicate must not get a second worker
            if profile in launched or self.matrix.is_decided(profile):
                continue
            if lesser_profile_failed(self.matrix, profile):
                self.matrix[profile] = StatusKind.SKIP
                skipped += 1
                continue
            launched.add(profile)
            workers.launch(self._work(profile), profile)
            # let the worker start; one that never suspends finishes here,
            # which lets later profiles be pruned by its result
            await asyncio.sleep(0)

        logger.info(
            "Launched {} workers for {} profiles ({} skipped)",
            len(workers),
            len(profiles),
            skipped,
        )
        try:
            await self._watch(workers)
        finally:
            self._render()

    async def _watch(self, workers: WorkerGroup) -> None:
        count = len(workers)
        while workers.running_count() and workers.first_fatal() is None:
            await asyncio.sleep(self.poll_interval)
            running = workers.running_count()
            if running != count:
                self._render()
                count = running

        fatal = workers.first_fatal()
        if fatal is not None:
            self._checkpoint(str(fatal))
            await workers.shutdown()
            raise fatal
        workers.raise_unexpected()
