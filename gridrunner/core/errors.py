"""Exceptions raised by gridrunner."""

from __future__ import annotations

from gridrunner.datastructures.profile import Profile
from gridrunner.datastructures.type_aliases import CommandLine


class GridRunnerError(Exception):
    """Base class for gridrunner errors."""


class ConfigurationError(GridRunnerError):
    """Raised when settings cannot be turned into a usable configuration."""


class FatalRunError(GridRunnerError):
    """A profile failed and the outcome policy says the run must end."""

    def __init__(self, command: CommandLine, profile: Profile) -> None:
        self.command = command
        self.profile = profile
        super().__init__(f"failure: {profile}\n{command}")
