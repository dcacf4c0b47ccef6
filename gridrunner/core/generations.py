"""
Toolchain generations.

Which memory models exist, which flags are safe and which combinations are
historically known to be solid all vary with the compiler release. Rather
than branching on version numbers throughout the code, each generation is
described once as data and looked up by version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from gridrunner.core.errors import ConfigurationError
from gridrunner.datastructures.profile import MemoryModel
from gridrunner.datastructures.type_aliases import CompilerFlag, ToolchainVersion

VERSION_PATTERN = re.compile(r"(\d+)\.(\d+)(?:\.\d+)?")

_BASE_CI_WARNINGS: tuple[CompilerFlag, ...] = (
    "UnusedImport",
    "ProveInit",
    "CaseTransition",
)


@dataclass(frozen=True, slots=True)
class ToolchainGeneration:
    """Behavior of every toolchain release from ``version`` onward."""

    version: ToolchainVersion
    local_memory: frozenset[MemoryModel]
    ci_memory: frozenset[MemoryModel]
    known_solid_ceiling: MemoryModel | None = None
    danger_flags: tuple[CompilerFlag, ...] = ()
    incremental: bool = False
    incremental_off_on_ci: bool = False
    ci_quiet_warnings: tuple[CompilerFlag, ...] = _BASE_CI_WARNINGS
    strip_panics_for_js: bool = False
    sink_inference_off: bool = False

    @property
    def label(self) -> str:
        major, minor = self.version
        return f"{major}.{minor}"

    def memory_models(self, ci: bool) -> frozenset[MemoryModel]:
        """Memory models enabled for this generation, ``vm`` excluded."""
        if ci:
            return self.local_memory | self.ci_memory
        return self.local_memory

    def known_solid(self, memory: MemoryModel) -> bool:
        """True when ``memory`` is in this generation's baseline."""
        if self.known_solid_ceiling is None:
            return False
        return memory <= self.known_solid_ceiling


_STRICT_DANGER: tuple[CompilerFlag, ...] = (
    "--panics:on",
    "--exceptions:goto",
    "--experimental:strictFuncs",
)

GENERATIONS: tuple[ToolchainGeneration, ...] = (
    ToolchainGeneration(
        version=(1, 0),
        local_memory=frozenset({MemoryModel.REFC}),
        ci_memory=frozenset({MemoryModel.REFC, MemoryModel.MARK_AND_SWEEP}),
    ),
    ToolchainGeneration(
        version=(1, 2),
        local_memory=frozenset({MemoryModel.ARC}),
        ci_memory=frozenset({MemoryModel.REFC, MemoryModel.MARK_AND_SWEEP}),
        known_solid_ceiling=MemoryModel.ARC,
        ci_quiet_warnings=(*_BASE_CI_WARNINGS, "ObservableStores"),
        sink_inference_off=True,
    ),
    ToolchainGeneration(
        version=(1, 4),
        local_memory=frozenset({MemoryModel.ARC}),
        ci_memory=frozenset(
            {MemoryModel.REFC, MemoryModel.MARK_AND_SWEEP, MemoryModel.ORC}
        ),
        known_solid_ceiling=MemoryModel.ORC,
        ci_quiet_warnings=(*_BASE_CI_WARNINGS, "ObservableStores", "UnreachableCode"),
        strip_panics_for_js=True,
    ),
    ToolchainGeneration(
        version=(1, 5),
        local_memory=frozenset({MemoryModel.ARC}),
        ci_memory=frozenset(
            {MemoryModel.REFC, MemoryModel.MARK_AND_SWEEP, MemoryModel.ORC}
        ),
        danger_flags=_STRICT_DANGER,
        incremental_off_on_ci=True,
        ci_quiet_warnings=(*_BASE_CI_WARNINGS, "ObservableStores", "UnreachableCode"),
    ),
    ToolchainGeneration(
        version=(1, 6),
        local_memory=frozenset({MemoryModel.ARC}),
        ci_memory=frozenset(
            {MemoryModel.REFC, MemoryModel.MARK_AND_SWEEP, MemoryModel.ORC}
        ),
        danger_flags=_STRICT_DANGER,
        incremental=True,
        ci_quiet_warnings=(*_BASE_CI_WARNINGS, "ObservableStores", "UnreachableCode"),
    ),
)

DEFAULT_VERSION: ToolchainVersion = (1, 6)


def parse_version(text: str) -> ToolchainVersion:
    """Parse ``X.Y`` or ``X.Y.Z`` into ``(X, Y)``."""
    match = VERSION_PATTERN.search(text)
    if match is None:
        raise ConfigurationError(f"Unrecognized toolchain version: {text!r}")
    return (int(match.group(1)), int(match.group(2)))


def generation_for(
    version: ToolchainVersion,
    table: tuple[ToolchainGeneration, ...] = GENERATIONS,
) -> ToolchainGeneration:
    """Pick the newest generation whose version does not exceed ``version``."""
    if not table:
        raise ConfigurationError("No toolchain generations configured")
    ordered = sorted(table, key=lambda generation: generation.version)
    chosen = ordered[0]
    for generation in ordered:
        if generation.version <= version:
            chosen = generation
    return chosen
