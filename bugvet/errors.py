"""Structured error types with recovery suggestions.

Errors raised by the infrastructure around the rules (dump loading,
configuration, rule selection). Rules themselves never raise for the
code they inspect; they report findings instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCategory(Enum):
    """Categories of errors for organization and handling."""

    CONFIGURATION = "configuration"  # Invalid or unreadable config
    INPUT = "input"  # Unreadable or malformed dumps
    VALIDATION = "validation"  # Invalid arguments


@dataclass
class CLIError(Exception):
    """Base class for structured errors with recovery suggestions.

    Attributes:
        category: Error category for grouping.
        message: Human-readable error message.
        suggestion: Optional actionable recovery suggestion.
        details: Optional additional details dict.
        exit_code: Exit code to use when this error causes termination.
    """

    category: ErrorCategory
    message: str
    suggestion: str | None = None
    details: dict[str, Any] | None = field(default_factory=dict)
    exit_code: int = 2

    def __post_init__(self) -> None:
        """Initialize the exception with the message."""
        super().__init__(self.message)

    def format(self, use_color: bool = True) -> str:
        """Format the error for display.

        Args:
            use_color: Whether to include ANSI color codes.

        Returns:
            Formatted error string with suggestion if available.
        """
        red = "\033[91m" if use_color else ""
        cyan = "\033[96m" if use_color else ""
        dim = "\033[2m" if use_color else ""
        reset = "\033[0m" if use_color else ""

        lines = [f"{red}Error:{reset} {self.message}"]

        if self.suggestion:
            lines.append(f"{cyan}Suggestion:{reset} {self.suggestion}")

        if self.details:
            for key, value in self.details.items():
                lines.append(f"{dim}  {key}: {value}{reset}")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format(use_color=False)


class DumpLoadError(CLIError):
    """A syntax/type dump could not be read or is malformed."""

    def __init__(self, path: str | Path, reason: str):
        super().__init__(
            category=ErrorCategory.INPUT,
            message=f"Cannot load dump {path}: {reason}",
            suggestion="Regenerate the dump with the Go front end and check its version",
            details={"path": str(path)},
        )
        self.path = str(path)
        self.reason = reason


class ConfigurationError(CLIError):
    """A configuration file is unreadable or invalid."""

    def __init__(self, path: str | Path, reason: str):
        super().__init__(
            category=ErrorCategory.CONFIGURATION,
            message=f"Invalid configuration in {path}: {reason}",
            suggestion="Fix the JSON or remove the file to fall back to defaults",
            details={"path": str(path)},
        )


class UnknownRuleError(CLIError):
    """A rule id requested for selection is not registered."""

    def __init__(self, rule_ids: list[str], available: list[str] | None = None):
        super().__init__(
            category=ErrorCategory.VALIDATION,
            message=f"Unknown rule(s): {', '.join(sorted(rule_ids))}",
            suggestion="Run 'bugvet rules' to list the available rule ids",
            details={"available": ", ".join(sorted(available))} if available else None,
        )
        self.rule_ids = list(rule_ids)
