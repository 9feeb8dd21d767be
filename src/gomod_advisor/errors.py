"""Exceptions raised by gomod-advisor."""

from __future__ import annotations


class AdvisorError(Exception):
    """Base class for all gomod-advisor errors."""


class ManifestNotFoundError(AdvisorError, FileNotFoundError):
    """Raised when a project directory has no ``go.mod``."""

    def __init__(self, directory: object) -> None:
        """Initialize with the directory that was searched."""
        super().__init__(f"go.mod file not found in {directory!s}")
        self.directory = directory


class GoCommandError(AdvisorError):
    """Raised when a ``go`` command fails."""

    def __init__(self, command: str, exit_code: int, error_output: str) -> None:
        """Initialize a go command error.

        Args:
            command: The command line that was executed
            exit_code: Process exit code (``-1`` if the process could not be started)
            error_output: Captured standard error

        """
        super().__init__(f"Command '{command}' failed with exit code {exit_code}: {error_output.strip()}")
        self.command = command
        self.exit_code = exit_code
        self.error_output = error_output
