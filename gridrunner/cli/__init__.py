"""
gridrunner command line interface.

Provides the ``gridrunner`` command group for running, inspecting and
discovering the test matrix.
"""

from .main import cli, main

__all__ = ["cli", "main"]
