"""Errors raised by summary generators."""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for summary generator errors."""


class GeneratorValidationError(GeneratorError, ValueError):
    """Raised when a generator is asked to run for an unusable repository."""

    def __init__(self, field: str) -> None:
        """Initialise with the name of the empty field."""
        self.field = field
        super().__init__(f"{field} must not be empty")


class GeneratorExecutionError(GeneratorError):
    """Raised when the external generator command fails.

    Covers non-zero exits, a missing or unlaunchable executable, and
    timeouts. Captured output is kept for diagnostics.

    Attributes
    ----------
    stdout
        Captured standard output (possibly empty).
    stderr
        Captured standard error (possibly empty).
    exit_status
        Process exit status, or ``None`` when the process never ran to
        completion.

    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_status: int | None = None,
    ) -> None:
        """Initialise with a message, captured streams and exit status."""
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status
        super().__init__(message)
