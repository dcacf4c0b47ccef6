"""
Semantic type aliases for gridrunner datastructures.

These aliases name the raw strings and numbers that flow between the
scheduler, the engine and the external toolchain.
"""

from collections.abc import Awaitable, Callable

# Test identification
type TestPath = str
type ProjectName = str

# Toolchain invocation
type CommandLine = str
type ExitCode = int
type CompilerFlag = str
type ResourceKey = str
type ToolchainVersion = tuple[int, int]

# Time
type DurationSeconds = float

# Collaborator contracts
type RunExternal = Callable[[CommandLine], Awaitable[ExitCode]]
