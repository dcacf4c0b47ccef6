"""
Core datastructures for gridrunner.

Profiles, their axes and statuses, and the results matrix that collects
outcomes while a run is in progress.
"""

from .matrix import MatrixObserver, ResultsMatrix
from .profile import (
    Backend,
    MemoryModel,
    Optimizer,
    OrdinalAxis,
    Profile,
    StatusKind,
    short_name,
    short_path,
)

__all__ = [
    "Backend",
    "MatrixObserver",
    "MemoryModel",
    "Optimizer",
    "OrdinalAxis",
    "Profile",
    "ResultsMatrix",
    "StatusKind",
    "short_name",
    "short_path",
]
