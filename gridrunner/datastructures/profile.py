"""
Profiles and the axes they are built from.

A Profile names one toolchain configuration for one test file. Every axis is
an ordinal enumeration whose order runs from the loosest to the strictest
setting; the dominance rules in the scheduler rely on that order, so member
order here is load-bearing and must not be rearranged for cosmetic reasons.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from enum import IntEnum
from pathlib import PurePath
from typing import Self

from hypothesis import strategies as st

from .type_aliases import TestPath


class OrdinalAxis(IntEnum):
    """Base for configuration axes ranked by increasing strictness."""

    @property
    def label(self) -> str:
        """Name used on the toolchain command line."""
        return self.name.lower()

    @property
    def column_label(self) -> str:
        """Name used in table headers and cells."""
        return self.label

    @classmethod
    def parse(cls, text: str) -> Self:
        """Look up a member by toolchain label or Python name."""
        needle = text.strip()
        for member in cls:
            if needle in (member.label, member.name.lower(), member.column_label):
                return member
        choices = ", ".join(member.label for member in cls)
        raise ValueError(f"Unknown {cls.__name__} '{text}' (expected one of {choices})")


class Backend(OrdinalAxis):
    """Compiler backends under test."""

    C = 0
    CPP = 1
    JS = 2


class Optimizer(OrdinalAxis):
    """Optimization modes under test."""

    DEBUG = 0
    RELEASE = 1
    DANGER = 2


class MemoryModel(OrdinalAxis):
    """Memory management strategies under test."""

    REFC = 0
    MARK_AND_SWEEP = 1
    ARC = 2
    ORC = 3
    VM = 4

    @property
    def label(self) -> str:
        if self is MemoryModel.MARK_AND_SWEEP:
            return "markAndSweep"
        return self.name.lower()

    @property
    def column_label(self) -> str:
        if self is MemoryModel.MARK_AND_SWEEP:
            return "m&s"
        return self.label


class StatusKind(IntEnum):
    """Outcome of a profile, ordered from least to most noteworthy.

    Anything above ``PART`` counts as a failure; ``INFO`` marks a diagnostic
    run which is displayed but never judged.
    """

    NONE = 0
    SKIP = 1
    PASS = 2
    PART = 3
    FAIL = 4
    INFO = 5

    @property
    def glyph(self) -> str:
        return _STATUS_GLYPHS[self]

    @property
    def style(self) -> str:
        return _STATUS_STYLES[self]

    @property
    def is_failure(self) -> bool:
        return self > StatusKind.PART


_STATUS_GLYPHS: dict[StatusKind, str] = {
    StatusKind.NONE: " ",
    StatusKind.SKIP: "❔",
    StatusKind.PASS: "🟢",
    StatusKind.PART: "🟡",
    StatusKind.FAIL: "🔴",
    StatusKind.INFO: "🔵",
}

_STATUS_STYLES: dict[StatusKind, str] = {
    StatusKind.NONE: "",
    StatusKind.SKIP: "dim",
    StatusKind.PASS: "bold green",
    StatusKind.PART: "bold yellow",
    StatusKind.FAIL: "bold red",
    StatusKind.INFO: "bold blue",
}


def short_name(test: TestPath) -> str:
    """File name of ``test`` without its extension."""
    return PurePath(test).stem


def short_path(test: TestPath) -> str:
    """Parent directory and short name of ``test``, e.g. ``tests/tfoo``."""
    path = PurePath(test)
    parent = path.parent.name
    if not parent:
        return path.stem
    return f"{parent}/{path.stem}"


@dataclass(frozen=True, slots=True)
class Profile:
    """
    Compilation settings for a single test invocation.

    Equality and hashing cover every field, so two profiles share a slot in
    the results matrix only when they also name the same test. Ordering
    compares the axes alone (backend, then memory model, then optimizer) and
    ignores the test, which is what the scheduling queue wants.
    """

    backend: Backend
    optimizer: Optimizer
    memory: MemoryModel
    test: TestPath

    @property
    def order_key(self) -> tuple[int, int, int]:
        return (int(self.backend), int(self.memory), int(self.optimizer))

    def __lt__(self, other: Profile) -> bool:
        if not isinstance(other, Profile):
            return NotImplemented
        return self.order_key < other.order_key

    @property
    def nonsensical(self) -> bool:
        """True when the memory model and backend cannot be combined."""
        if self.memory is MemoryModel.VM and self.backend is not Backend.JS:
            return True
        if self.backend is Backend.JS and self.memory is not MemoryModel.VM:
            return True
        return False

    @property
    def labels(self) -> tuple[str, str, str]:
        """Row labels used when grouping profiles in the results table."""
        return (short_path(self.test), self.backend.label, self.optimizer.label)

    @property
    def digest(self) -> str:
        """Stable short digest over every field."""
        material = "|".join(
            (self.backend.label, self.optimizer.label, self.memory.label, self.test)
        )
        return hashlib.sha1(material.encode("utf-8")).hexdigest()[:10]

    def with_optimizer(self, optimizer: Optimizer) -> Profile:
        return replace(self, optimizer=optimizer)

    def with_memory(self, memory: MemoryModel) -> Profile:
        return replace(self, memory=memory)

    def __str__(self) -> str:
        return (
            f"{short_name(self.test)}: {self.backend.label} "
            f"{self.memory.label} {self.optimizer.label}"
        )


# Hypothesis strategies for property-based testing


def nim_test_path_strategy() -> st.SearchStrategy[TestPath]:
    """Generate plausible test file paths."""
    stems = st.text(
        alphabet="abcdefghijklmnopqrstuvwxyz0123456789_",
        min_size=1,
        max_size=8,
    )
    return stems.map(lambda stem: f"tests/t{stem}.nim")


def profile_strategy(
    tests: st.SearchStrategy[TestPath] | None = None,
) -> st.SearchStrategy[Profile]:
    """Generate profiles, including nonsensical combinations."""
    return st.builds(
        Profile,
        backend=st.sampled_from(Backend),
        optimizer=st.sampled_from(Optimizer),
        memory=st.sampled_from(MemoryModel),
        test=tests if tests is not None else nim_test_path_strategy(),
    )


def valid_profile_strategy(
    tests: st.SearchStrategy[TestPath] | None = None,
) -> st.SearchStrategy[Profile]:
    """Generate only profiles that pass the validity predicate."""
    return profile_strategy(tests).filter(lambda profile: not profile.nonsensical)


def status_strategy() -> st.SearchStrategy[StatusKind]:
    return st.sampled_from(StatusKind)
