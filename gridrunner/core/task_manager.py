"""
Worker task bookkeeping for the execution engine.

Each launched profile runs in its own asyncio task. ``WorkerGroup`` keeps
track of those tasks so the engine can count the live ones, find the first
fatal failure and cancel whatever is left when the run has to end early.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger

from gridrunner.core.errors import FatalRunError
from gridrunner.datastructures.profile import Profile, StatusKind


class WorkerGroup:
    """Tracks one asyncio task per launched profile."""

    def __init__(self, name: str = "workers") -> None:
        self.name = name
        self.tasks: dict[asyncio.Task[StatusKind], Profile] = {}

    def launch(
        self, coro: Coroutine[Any, Any, StatusKind], profile: Profile
    ) -> asyncio.Task[StatusKind]:
        """Create and track the worker task for ``profile``."""
        task = asyncio.create_task(coro, name=str(profile))
        self.tasks[task] = profile
        task.add_done_callback(self._task_completed)
        logger.debug(f"[{self.name}] Launched {task.get_name()}")
        return task

    def _task_completed(self, task: asyncio.Task[StatusKind]) -> None:
        if task.cancelled():
            logger.debug(f"[{self.name}] {task.get_name()} was cancelled")
            return
        error = task.exception()
        if error is None:
            logger.debug(f"[{self.name}] {task.get_name()} -> {task.result().name}")
        elif isinstance(error, FatalRunError):
            logger.debug(f"[{self.name}] {task.get_name()} failed fatally")
        else:
            logger.error(f"[{self.name}] {task.get_name()} crashed: {error!r}")

    def running_count(self) -> int:
        return sum(1 for task in self.tasks if not task.done())

    def _errors(self) -> list[BaseException]:
        errors: list[BaseException] = []
        for task in self.tasks:
            if task.done() and not task.cancelled():
                error = task.exception()
                if error is not None:
                    errors.append(error)
        return errors

    def first_fatal(self) -> FatalRunError | None:
        for error in self._errors():
            if isinstance(error, FatalRunError):
                return error
        return None

    def raise_unexpected(self) -> None:
        """Re-raise the first worker error that is not a fatal run error."""
        for error in self._errors():
            if not isinstance(error, FatalRunError):
                raise error

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel workers that are still running and wait for them to stop."""
        pending = [task for task in self.tasks if not task.done()]
        if not pending:
            return
        logger.info(f"[{self.name}] Cancelling {len(pending)} running workers")
        for task in pending:
            task.cancel()
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            logger.warning(f"[{self.name}] Worker did not stop: {task.get_name()}")

    def __len__(self) -> int:
        return len(self.tasks)

    def __bool__(self) -> bool:
        return bool(self.tasks)
