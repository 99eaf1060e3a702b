"""
Custom exceptions for pluglint.

Only conditions the outer layer must stop on are exceptions. A missing
resource, a resource outside its root, or a type that misses its contract
is a finding and travels as data (see resources.locator and
inspection.verifier).
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


class ExitCode:
    """Standard exit codes for pluglint."""
    SUCCESS = 0
    FINDINGS = 1
    GENERAL_ERROR = 2
    INVALID_PROJECT = 3
    INVALID_DESCRIPTOR = 4


@dataclass
class ProjectNotFound(Exception):
    """Raised when the project directory to inspect does not exist.

    Attributes:
        path: The path that was given
    """
    path: Path

    def __str__(self) -> str:
        return f"Project directory does not exist: {self.path}"

    @property
    def exit_code(self) -> int:
        return ExitCode.INVALID_PROJECT


@dataclass
class InvalidDescriptor(Exception):
    """Raised when a plugin descriptor file cannot be parsed.

    Attributes:
        path: Descriptor file
        reason: What was wrong with it
    """
    path: Optional[Path]
    reason: str

    def __str__(self) -> str:
        where = f" {self.path}" if self.path else ""
        return f"Invalid plugin descriptor{where}: {self.reason}"

    @property
    def exit_code(self) -> int:
        return ExitCode.INVALID_DESCRIPTOR


class ClassFileError(ValueError):
    """Raised by the class-file reader on truncated or foreign data."""


def exception_to_json(exc: Exception, context: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Convert an exception to a JSON-serializable dictionary.

    Args:
        exc: The exception to convert
        context: Optional additional context (project, descriptor, ...)

    Returns:
        JSON-serializable dict with error details
    """
    error_dict: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
    }

    if hasattr(exc, "exit_code"):
        error_dict["exit_code"] = exc.exit_code
    else:
        error_dict["exit_code"] = ExitCode.GENERAL_ERROR

    if isinstance(exc, ProjectNotFound):
        error_dict["path"] = str(exc.path)

    elif isinstance(exc, InvalidDescriptor):
        if exc.path is not None:
            error_dict["path"] = str(exc.path)
        error_dict["reason"] = exc.reason

    if context:
        error_dict["context"] = context

    return {"error": error_dict}


def format_json_error(exc: Exception, context: Optional[dict[str, Any]] = None) -> str:
    """Format an exception as a JSON string."""
    return json.dumps(exception_to_json(exc, context), indent=2, default=str)
