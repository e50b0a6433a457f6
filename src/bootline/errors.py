"""Bootline error code registry.

Provides structured error codes with helpful messages and next steps.
Each error has:
- Code: BL-EXXX format
- Message: Human-readable description
- Next step: Actionable command or instruction
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import sys


class ErrorCode(Enum):
    """Bootline error codes."""

    # Configuration errors (E001-E099)
    E002 = "E002"  # Invalid mode specified
    E003 = "E003"  # Invalid configuration value

    # Data source errors (E100-E199)
    E100 = "E100"  # systemctl failed
    E101 = "E101"  # Default target timestamp missing
    E102 = "E102"  # Capture file invalid

    # Timeline errors (E200-E299)
    E200 = "E200"  # Unknown actor
    E201 = "E201"  # Duplicate actor
    E202 = "E202"  # Invalid event
    E203 = "E203"  # Document has no embedded state

    # File/IO errors (E300-E399)
    E300 = "E300"  # Cannot read file
    E301 = "E301"  # Cannot write file


@dataclass
class BootlineError:
    """Structured error with code, message, and next step."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        lines = [
            f"BL-{self.code.value}: {self.message}",
        ]
        if self.details:
            lines.append(f"  Details: {self.details}")
        lines.append(f"  Next step: {self.next_step}")
        return "\n".join(lines)

    def print(self, file=None) -> None:
        """Print the error to stderr (or specified file)."""
        print(str(self), file=file or sys.stderr)


ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    # (message_template, next_step)
    ErrorCode.E002: (
        "Invalid mode: {details}",
        "Set BOOTLINE_MODE or --mode to live or fixture"
    ),
    ErrorCode.E003: (
        "Invalid configuration value: {details}",
        "Check BOOTLINE_* variables in .env or the environment"
    ),
    ErrorCode.E100: (
        "systemctl query failed: {details}",
        "Run on a systemd host or use --mode fixture with --capture"
    ),
    ErrorCode.E101: (
        "Default target activation time is missing: {details}",
        "Check that the default target was reached ('systemctl is-active default.target')"
    ),
    ErrorCode.E102: (
        "Capture file is invalid: {details}",
        "Recreate it with 'bootline capture --out <file>'"
    ),
    ErrorCode.E200: (
        "Unknown actor: {details}",
        "Register it first with 'bootline add-actor'"
    ),
    ErrorCode.E201: (
        "Actor already registered: {details}",
        "Actor names must be unique within a timeline"
    ),
    ErrorCode.E202: (
        "Invalid event: {details}",
        "Give either a non-negative duration or --endless, not both"
    ),
    ErrorCode.E203: (
        "Document has no embedded timeline state: {details}",
        "Create the document with 'bootline create' first"
    ),
    ErrorCode.E300: (
        "Cannot read file: {details}",
        "Check file permissions and path"
    ),
    ErrorCode.E301: (
        "Cannot write file: {details}",
        "Check directory permissions"
    ),
}


def make_error(code: ErrorCode, details: Optional[str] = None) -> BootlineError:
    """Create a BootlineError from a code with optional details.

    Args:
        code: The error code
        details: Optional details to include in the message

    Returns:
        BootlineError instance ready to print
    """
    template = ERROR_TEMPLATES.get(code, ("Unknown error", "Re-run with --verbose"))
    message_template, next_step = template

    if details and "{details}" in message_template:
        message = message_template.format(details=details)
    elif details:
        message = f"{message_template}: {details}"
    else:
        message = message_template.replace(": {details}", "")

    return BootlineError(
        code=code,
        message=message,
        next_step=next_step,
        details=details if "{details}" not in message_template else None,
    )


# Verbose mode flag (set by CLI)
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    """Set verbose mode for error output."""
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Print a formatted error for an exception.

    In verbose mode the full traceback follows the message.
    """
    import traceback

    err = make_error(code, details or str(exc))
    err.print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exc()
