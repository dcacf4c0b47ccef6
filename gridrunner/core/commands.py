"""
Compiler command lines for profiles.

``CommandBuilder`` turns a profile into the ``nim`` invocation that builds and
runs it, and derives the cache directory (the shared resource key) the
invocation compiles into.
"""

from __future__ import annotations

import hashlib
import os
import shlex
import tempfile
from pathlib import Path

from gridrunner.core.config import MatrixConfig
from gridrunner.datastructures.profile import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
    short_name,
)
from gridrunner.datastructures.type_aliases import (
    CommandLine,
    CompilerFlag,
    ResourceKey,
    TestPath,
)

NOISY_HINTS: tuple[str, ...] = (
    "Cc",
    "Link",
    "Conf",
    "Processing",
    "Exec",
    "XDeclaredButNotUsed",
)


def _path_digest(test: TestPath) -> str:
    return hashlib.sha1(test.encode("utf-8")).hexdigest()[:8]


class CommandBuilder:
    """Renders compiler invocations according to a ``MatrixConfig``."""

    def __init__(
        self,
        config: MatrixConfig,
        *,
        compiler: str = "nim",
        cache_root: Path | None = None,
        pid: int | None = None,
    ) -> None:
        self.config = config
        self.compiler = compiler
        if cache_root is None:
            cache_root = Path(config.cache_root or tempfile.gettempdir())
        self.cache_root = cache_root
        self.pid = os.getpid() if pid is None else pid

    def shared_resource_key(self, profile: Profile) -> ResourceKey:
        """Name of the cache area ``profile`` compiles into.

        CI runs mostly vary by memory model, so they share caches across
        tests; local runs vary by test file and share across memory models.
        """
        if self.config.ci:
            return (
                f"{profile.backend.label}.{profile.optimizer.label}."
                f"{profile.memory.label}"
            )
        return (
            f"{_path_digest(profile.test)}.{profile.backend.label}."
            f"{profile.optimizer.label}"
        )

    def cache_dir(self, profile: Profile) -> Path:
        key = self.shared_resource_key(profile)
        return self.cache_root / f"gridrunner-nimcache-{key}-{self.pid}"

    def options(self, profile: Profile) -> list[CompilerFlag]:
        generation = self.config.generation
        result = [*self.config.default_flags, *self.config.flags_for(profile.optimizer)]
        result.extend(self.config.extra_args)

        cache = self.cache_dir(profile)
        result.append(f'--nimCache:"{cache}"')
        # an unlikely file name keeps concurrent builds from clobbering output
        result.append(f'--out:"{short_name(profile.test)}_{profile.digest}"')
        result.append(f'--outdir:"{cache}"')

        if profile.backend is Backend.JS:
            if generation.strip_panics_for_js:
                # writeStackTrace breaks js builds with panics on
                result = [flag for flag in result if flag != "--panics:on"]
            # getCurrentDir() only works under node
            result.append("--define:nodejs")

        if "--compileOnly" not in result:
            result.append("--run")

        if generation.sink_inference_off:
            # sink inference breaks VM code on this generation
            result.append("--sinkInference:off")
        return result

    def hints(self, profile: Profile) -> list[CompilerFlag]:
        """``--hint`` and ``--warning`` switches that keep the logs readable."""
        omit = list(NOISY_HINTS)
        if self.config.ci or profile.optimizer is not Optimizer.DANGER:
            # performance warnings only matter for local danger builds
            omit.append("Performance")
        flags = [f"--hint[{hint}]=off" for hint in omit]
        if self.config.ci:
            flags.extend(
                f"--warning[{warning}]=off"
                for warning in self.config.generation.ci_quiet_warnings
            )
        return flags

    def render(self, profile: Profile, with_hints: bool = False) -> CommandLine:
        parts = [self.compiler, profile.backend.label]
        if profile.memory is not MemoryModel.VM:
            parts.append(f"--gc:{profile.memory.label}")
        parts.extend(self.options(profile))
        if with_hints:
            parts.extend(self.hints(profile))
        parts.append(shlex.quote(profile.test))
        return " ".join(parts)

    def __call__(self, profile: Profile) -> CommandLine:
        return self.render(profile, with_hints=True)
