"""
Runner configuration.

``RunnerSettings`` gathers user-facing knobs from the environment, an
optional ``.env`` file and the command line. ``build_config`` turns them,
together with the toolchain generation, into the immutable ``MatrixConfig``
that the profile generator, command builder and outcome policy share.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridrunner.core.errors import ConfigurationError
from gridrunner.core.generations import (
    DEFAULT_VERSION,
    ToolchainGeneration,
    generation_for,
    parse_version,
)
from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    OrdinalAxis,
)
from gridrunner.datastructures.type_aliases import (
    CompilerFlag,
    DurationSeconds,
    ToolchainVersion,
)


def _running_on_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS", "false") == "true"


class RunnerSettings(BaseSettings):
    """gridrunner settings, read from ``GRIDRUNNER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GRIDRUNNER_", env_file=".env", extra="ignore"
    )

    ci: bool = Field(
        default_factory=_running_on_github_actions,
        description="Expand the matrix for continuous integration.",
    )
    fail_fast: bool = Field(
        True, description="On CI, treat every non-experimental failure as fatal."
    )
    toolchain_version: str | None = Field(
        None, description="Toolchain version (X.Y); detected when omitted."
    )
    backends: tuple[str, ...] | None = Field(
        None, description="Override the enabled backends."
    )
    optimizers: tuple[str, ...] | None = Field(
        None, description="Override the enabled optimization modes."
    )
    memory_models: tuple[str, ...] | None = Field(
        None, description="Override the enabled memory models."
    )
    extra_args: tuple[str, ...] = Field(
        (), description="Arguments appended to every compiler invocation."
    )
    poll_interval: float = Field(
        0.25, description="Seconds between worker liveness checks."
    )
    color: bool = Field(True, description="Style the results table.")
    log_level: str = Field("INFO", description="loguru log level.")
    log_debug_scopes: tuple[str, ...] = Field(
        (), description="Module prefixes that log at DEBUG regardless of level."
    )


_BASE_OPTIMIZER_FLAGS: Mapping[Optimizer, tuple[CompilerFlag, ...]] = {
    Optimizer.DEBUG: ("--debuginfo", "--stackTrace:on", "--excessiveStackTrace:on"),
    Optimizer.RELEASE: (
        "--define:release",
        "--stackTrace:on",
        "--excessiveStackTrace:on",
    ),
    Optimizer.DANGER: ("--define:danger",),
}


@dataclass(frozen=True, slots=True)
class MatrixConfig:
    """Immutable description of the matrix to run and how to judge it."""

    version: ToolchainVersion
    generation: ToolchainGeneration
    ci: bool
    fail_fast: bool
    backends: tuple[Backend, ...]
    optimizers: tuple[Optimizer, ...]
    memory_models: tuple[MemoryModel, ...]
    optimizer_flags: Mapping[Optimizer, tuple[CompilerFlag, ...]]
    default_flags: tuple[CompilerFlag, ...]
    extra_args: tuple[str, ...] = ()
    poll_interval: DurationSeconds = 0.25
    color: bool = True
    least_aggressive: Optimizer = Optimizer.DEBUG
    cache_root: str | None = field(default=None)

    @property
    def version_label(self) -> str:
        major, minor = self.version
        return f"{major}.{minor}"

    def flags_for(self, optimizer: Optimizer) -> tuple[CompilerFlag, ...]:
        return self.optimizer_flags.get(optimizer, ())


def _parse_axis[A: OrdinalAxis](
    axis: type[A], names: Iterable[str] | None
) -> tuple[A, ...] | None:
    if names is None:
        return None
    try:
        values = {axis.parse(name) for name in names}
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    return tuple(sorted(values))


def default_flags(generation: ToolchainGeneration, ci: bool) -> tuple[CompilerFlag, ...]:
    """Options common to every profile."""
    flags: list[CompilerFlag] = ['--path="."', "--parallelBuild:0"]
    if generation.incremental:
        # always use IC when it is available
        flags.append("--incremental:on")
    elif ci:
        flags.append("--forceBuild:on")
        if generation.incremental_off_on_ci:
            flags.append("--incremental:off")
    return tuple(flags)


def optimizer_flags(
    generation: ToolchainGeneration,
) -> Mapping[Optimizer, tuple[CompilerFlag, ...]]:
    flags = dict(_BASE_OPTIMIZER_FLAGS)
    flags[Optimizer.DANGER] = flags[Optimizer.DANGER] + generation.danger_flags
    return MappingProxyType(flags)


def build_config(
    settings: RunnerSettings,
    *,
    detected_version: ToolchainVersion | None = None,
    cache_root: str | None = None,
) -> MatrixConfig:
    """Resolve ``settings`` into a ``MatrixConfig``.

    The version comes from the settings when given, then from
    ``detected_version``, then falls back to the newest known generation.
    """
    if settings.toolchain_version:
        version = parse_version(settings.toolchain_version)
    elif detected_version is not None:
        version = detected_version
    else:
        version = DEFAULT_VERSION
    generation = generation_for(version)
    ci = settings.ci

    backends = _parse_axis(Backend, settings.backends)
    if backends is None:
        backends = (Backend.C, Backend.CPP, Backend.JS) if ci else (Backend.C,)

    optimizers = _parse_axis(Optimizer, settings.optimizers)
    if optimizers is None:
        if ci:
            optimizers = tuple(Optimizer)
        else:
            # locally, a danger build shows time/space; release is omitted
            optimizers = (Optimizer.DEBUG, Optimizer.DANGER)

    memory_models = _parse_axis(MemoryModel, settings.memory_models)
    if memory_models is None:
        memory = set(generation.memory_models(ci))
        if ci and Backend.JS in backends:
            memory.add(MemoryModel.VM)
        memory_models = tuple(sorted(memory))

    if settings.poll_interval <= 0:
        raise ConfigurationError(
            f"poll_interval must be positive, got {settings.poll_interval}"
        )

    return MatrixConfig(
        version=version,
        generation=generation,
        ci=ci,
        fail_fast=settings.fail_fast,
        backends=backends,
        optimizers=optimizers,
        memory_models=memory_models,
        optimizer_flags=optimizer_flags(generation),
        default_flags=default_flags(generation, ci),
        extra_args=tuple(settings.extra_args),
        poll_interval=settings.poll_interval,
        color=settings.color,
        cache_root=cache_root,
    )
