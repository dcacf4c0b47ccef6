"""
Profile generation, scheduling order and dominance.

Profiles are generated as the cross product of the enabled axis values and
popped from a priority queue loosest-first, so that a failure of a loose
configuration is usually known before its stricter siblings come up. A
stricter sibling of a failed profile is "dominated": tightening one axis will
not rescue a build that already fails, so it can be skipped.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable, Iterable, Iterator

from loguru import logger

from gridrunner.core.config import MatrixConfig
from gridrunner.datastructures.matrix import ResultsMatrix
from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
    StatusKind,
)
from gridrunner.datastructures.type_aliases import TestPath

type ValidityPredicate = Callable[[Profile], bool]


def is_valid(profile: Profile) -> bool:
    return not profile.nonsensical


def generate_profiles(
    test: TestPath,
    backends: Iterable[Backend],
    optimizers: Iterable[Optimizer],
    memory_models: Iterable[MemoryModel],
    valid: ValidityPredicate = is_valid,
) -> list[Profile]:
    """Cross product of the given axis values for ``test``, minus invalid ones."""
    candidates = (
        Profile(backend=backend, optimizer=optimizer, memory=memory, test=test)
        for optimizer, memory, backend in itertools.product(
            optimizers, memory_models, backends
        )
    )
    # dict.fromkeys keeps the first occurrence of duplicated axis values
    return list(dict.fromkeys(profile for profile in candidates if valid(profile)))


def profiles_for(test: TestPath, config: MatrixConfig) -> list[Profile]:
    """Profiles to schedule for ``test`` under ``config``."""
    optimizers: Iterable[Optimizer] = config.optimizers
    if config.ci:
        # the least aggressive mode is reserved for diagnostics on CI
        optimizers = [
            optimizer
            for optimizer in config.optimizers
            if optimizer > config.least_aggressive
        ]
    return generate_profiles(
        test, config.backends, optimizers, config.memory_models
    )


def profiles_for_tests(
    tests: Iterable[TestPath], config: MatrixConfig
) -> list[Profile]:
    profiles: list[Profile] = []
    for test in tests:
        profiles.extend(profiles_for(test, config))
    return profiles


class ProfileQueue:
    """Min-priority queue of profiles ordered by their axes.

    Profiles with identical axes come out in the order they were pushed.
    """

    def __init__(self, profiles: Iterable[Profile] = ()) -> None:
        self._heap: list[tuple[tuple[int, int, int], int, Profile]] = []
        self._sequence = itertools.count()
        for profile in profiles:
            self.push(profile)

    def push(self, profile: Profile) -> None:
        heapq.heappush(self._heap, (profile.order_key, next(self._sequence), profile))

    def pop(self) -> Profile:
        if not self._heap:
            raise IndexError("pop from an empty ProfileQueue")
        return heapq.heappop(self._heap)[2]

    def drain(self) -> Iterator[Profile]:
        while self._heap:
            yield self.pop()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)


def dominance_class(memory: MemoryModel) -> bool:
    """``vm`` profiles never dominate, or are dominated by, compiled ones."""
    return memory is MemoryModel.VM


def lesser_siblings(profile: Profile) -> Iterator[Profile]:
    """Profiles differing from ``profile`` by one strictly lesser axis value."""
    for optimizer in Optimizer:
        if optimizer < profile.optimizer:
            yield profile.with_optimizer(optimizer)
    for memory in MemoryModel:
        if memory < profile.memory:
            if dominance_class(memory) != dominance_class(profile.memory):
                continue
            yield profile.with_memory(memory)


def lesser_profile_failed(matrix: ResultsMatrix, profile: Profile) -> bool:
    """True when a lesser sibling of ``profile`` already failed."""
    for sibling in lesser_siblings(profile):
        if matrix.status(sibling) > StatusKind.PART:
            logger.debug("{} is dominated by failed {}", profile, sibling)
            return True
    return False
