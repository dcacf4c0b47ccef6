"""
Core gridrunner functionality.

Configuration, profile scheduling, the execution engine, the outcome policy
and the reporter.
"""

from .commands import CommandBuilder
from .config import MatrixConfig, RunnerSettings, build_config
from .discovery import discover_tests, ordered
from .engine import ExecutionEngine
from .errors import ConfigurationError, FatalRunError, GridRunnerError
from .generations import GENERATIONS, ToolchainGeneration, generation_for
from .policy import OutcomePolicy
from .reporter import MatrixReporter, matrix_table, render_matrix
from .runner import MatrixRunner, run_matrix
from .scheduler import (
    ProfileQueue,
    generate_profiles,
    lesser_profile_failed,
    profiles_for,
)

__all__ = [
    "GENERATIONS",
    "CommandBuilder",
    "ConfigurationError",
    "ExecutionEngine",
    "FatalRunError",
    "GridRunnerError",
    "MatrixConfig",
    "MatrixReporter",
    "MatrixRunner",
    "OutcomePolicy",
    "ProfileQueue",
    "RunnerSettings",
    "ToolchainGeneration",
    "build_config",
    "discover_tests",
    "generate_profiles",
    "generation_for",
    "lesser_profile_failed",
    "matrix_table",
    "ordered",
    "profiles_for",
    "render_matrix",
    "run_matrix",
]
