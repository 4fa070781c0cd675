from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ExportCodebaseError(Exception):
    """Base exception for errors in the export_codebase module."""


@dataclass(frozen=True)
class InvalidIgnorePatternError(ExportCodebaseError):
    """Raised when a gitignore-style pattern cannot be compiled."""

    pattern: str
    reason: str
    message: str = "The ignore pattern could not be compiled."


@dataclass(frozen=True)
class OutputWriteError(ExportCodebaseError):
    """Raised when the output artifact cannot be written or inspected."""

    path: Path
    reason: str
    message: str = "The output file could not be written."
