"""Pytest configuration and fixtures for gridrunner testing.

The fixtures here replace the external toolchain with an in-process fake so
engine and runner tests never launch a compiler.
"""

import asyncio
import io
from collections.abc import Callable

import pytest
from rich.console import Console

from gridrunner.core.config import MatrixConfig, RunnerSettings, build_config
from gridrunner.core.reporter import MatrixReporter


class FakeToolchain:
    """Stands in for ``run_external``.

    Records every command, the start/end order of invocations and the
    largest number of invocations that were in flight at once.
    """

    def __init__(
        self,
        outcome: Callable[[str], int] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.outcome = outcome or (lambda command: 0)
        self.delay = delay
        self.commands: list[str] = []
        self.events: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, command: str) -> int:
        self.commands.append(command)
        self.events.append(("start", command))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
            self.events.append(("end", command))
        return self.outcome(command)


def failing_when(*needles: str) -> Callable[[str], int]:
    """Outcome that fails commands containing any of ``needles``."""

    def _outcome(command: str) -> int:
        return 1 if any(needle in command for needle in needles) else 0

    return _outcome


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def quiet_reporter(console_buffer: io.StringIO) -> MatrixReporter:
    """Reporter writing into a buffer instead of the terminal."""
    console = Console(file=console_buffer, width=120, color_system=None)
    return MatrixReporter(console, version_label="1.6", color=False)


@pytest.fixture
def make_config(tmp_path) -> Callable[..., MatrixConfig]:
    """Build a ``MatrixConfig`` independent of the surrounding environment."""

    def _make(**overrides: object) -> MatrixConfig:
        values: dict[str, object] = {
            "ci": False,
            "fail_fast": True,
            "toolchain_version": "1.6",
            "poll_interval": 0.01,
            "color": False,
        }
        values.update(overrides)
        settings = RunnerSettings(_env_file=None, **values)  # type: ignore[arg-type]
        return build_config(settings, cache_root=str(tmp_path))

    return _make
