"""Exception taxonomy for zbootcheck."""
from __future__ import annotations

from pathlib import Path

from .contracts import ExitCode


class BootCheckError(RuntimeError):
    """Base class for failures that abort a run."""

    exit_code = ExitCode.PRECONDITION_FAILED


class PreconditionError(BootCheckError):
    """A required artifact is missing or unreadable; no result is meaningful."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ConfigError(BootCheckError):
    """Raised when a config file or value is invalid."""
