"""
gridrunner - configuration matrix test runner.

Runs every test file under a matrix of compiler configurations (backend,
optimization mode and memory model), skips configurations whose failure is
predictable from a looser one that already failed, and keeps a live table of
results while the builds run concurrently.

## Architecture

- **datastructures**: profiles, axes, statuses and the results matrix
- **core**: configuration, scheduling, the execution engine, the outcome
  policy and reporting
- **cli**: the ``gridrunner`` command

## Quick Start

```python
from gridrunner import RunnerSettings, build_config, discover_tests, run_matrix

config = build_config(RunnerSettings(toolchain_version="1.6"))
exit_code = run_matrix(discover_tests("tests"), config)
```
"""

from .core import (
    CommandBuilder,
    ConfigurationError,
    ExecutionEngine,
    FatalRunError,
    GridRunnerError,
    MatrixConfig,
    MatrixReporter,
    MatrixRunner,
    OutcomePolicy,
    RunnerSettings,
    build_config,
    discover_tests,
    run_matrix,
)
from .datastructures import (
    Backend,
    MemoryModel,
    Optimizer,
    Profile,
    ResultsMatrix,
    StatusKind,
)

__version__ = "0.1.0"

__all__ = [
    "Backend",
    "CommandBuilder",
    "ConfigurationError",
    "ExecutionEngine",
    "FatalRunError",
    "GridRunnerError",
    "MatrixConfig",
    "MatrixReporter",
    "MatrixRunner",
    "MemoryModel",
    "Optimizer",
    "OutcomePolicy",
    "Profile",
    "ResultsMatrix",
    "RunnerSettings",
    "StatusKind",
    "build_config",
    "discover_tests",
    "run_matrix",
]
