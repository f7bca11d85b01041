"""Errors raised by the repository update queue."""

from __future__ import annotations


class UpdateQueueError(Exception):
    """Base class for update queue errors."""


class QueueShutdownError(UpdateQueueError):
    """Raised when a job is submitted to, or abandoned by, a stopped queue."""

    def __init__(self, reason: str = "update queue is shut down") -> None:
        """Initialise with a description of why the job cannot run."""
        self.reason = reason
        super().__init__(reason)


class SummaryRegistrationError(UpdateQueueError):
    """Raised when a generated report could not be added to the catalogue.

    The report file exists; only indexing failed, so callers may retry the
    registration rather than the generation.

    Attributes
    ----------
    path
        Path reported by the generator.

    """

    def __init__(self, path: str, cause: BaseException) -> None:
        """Initialise with the attempted path and the underlying error."""
        self.path = path
        super().__init__(
            f"failed to register summary {path}: {type(cause).__name__}: {cause}"
        )
        self.__cause__ = cause
