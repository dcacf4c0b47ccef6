"""
Outcome policy: which failures end the run.

Outside CI only baseline combinations (memory models the toolchain
generation is known to handle) are fatal, so local iteration never stalls on
experimental configurations. On CI with fail-fast enabled, every failure is
fatal unless the profile uses an excused backend, memory model or optimizer.
All of these sets are plain data and can be replaced by callers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from gridrunner.core.config import MatrixConfig
from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
    StatusKind,
)

# neither cpp nor js is expected to work all of the time
DEFAULT_EXCUSED_BACKENDS = frozenset({Backend.CPP, Backend.JS})
# arc and orc are still too unreliable to demand successful runs
DEFAULT_EXCUSED_MEMORY = frozenset({MemoryModel.ARC, MemoryModel.ORC})
# danger builds include experimental features
DEFAULT_EXCUSED_OPTIMIZERS = frozenset({Optimizer.DANGER})


@dataclass(frozen=True, slots=True)
class OutcomePolicy:
    """Decides whether a failing profile is fatal to the run."""

    ci: bool
    fail_fast: bool
    known_solid: frozenset[MemoryModel] = frozenset()
    excused_backends: frozenset[Backend] = DEFAULT_EXCUSED_BACKENDS
    excused_memory: frozenset[MemoryModel] = DEFAULT_EXCUSED_MEMORY
    excused_optimizers: frozenset[Optimizer] = DEFAULT_EXCUSED_OPTIMIZERS

    @classmethod
    def from_config(cls, config: MatrixConfig) -> OutcomePolicy:
        generation = config.generation
        known_solid = frozenset(
            memory for memory in MemoryModel if generation.known_solid(memory)
        )
        return cls(ci=config.ci, fail_fast=config.fail_fast, known_solid=known_solid)

    def with_overrides(self, **changes: object) -> OutcomePolicy:
        return replace(self, **changes)  # type: ignore[arg-type]

    def excused(self, profile: Profile) -> bool:
        """True when the profile is flagged as experimental."""
        return (
            profile.backend in self.excused_backends
            or profile.memory in self.excused_memory
            or profile.optimizer in self.excused_optimizers
        )

    def should_pass(self, profile: Profile) -> bool:
        """True when ``profile`` is expected to pass in this environment."""
        if profile.memory in self.known_solid:
            return True
        if self.ci and self.fail_fast:
            return not self.excused(profile)
        return False

    def is_fatal(self, profile: Profile, status: StatusKind) -> bool:
        """Diagnostic ``INFO`` records are never judged."""
        if status is StatusKind.INFO or not status.is_failure:
            return False
        return self.should_pass(profile)
