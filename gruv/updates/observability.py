"""Structured log events for the repository update queue.

Usage
-----
>>> events = QueueEventLogger()
>>> events.log_job_enqueued(job, pending=3)

"""

from __future__ import annotations

import enum
import typing as typ

from gruv.common.time import seconds_between
from gruv.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from gruv.generation import GeneratorExecutionError, GeneratorResult
    from gruv.logging import _SupportsLog

    from .models import Job


OUTPUT_LOG_LIMIT = 800
TRUNCATION_MARKER = "...[truncated]"


class QueueEventType(enum.StrEnum):
    """Structured log event types for queued updates."""

    JOB_ENQUEUED = "queue.job.enqueued"
    JOB_STARTED = "queue.job.started"
    JOB_SUCCEEDED = "queue.job.succeeded"
    JOB_GENERATOR_FAILED = "queue.job.generator_failed"
    JOB_REGISTRATION_FAILED = "queue.job.registration_failed"
    JOB_ABANDONED = "queue.job.abandoned"
    WORKER_STOPPED = "queue.worker.stopped"


def truncate_output(text: str | None, limit: int = OUTPUT_LOG_LIMIT) -> str:
    """Cap *text* at *limit* characters, marking the cut.

    Examples
    --------
    >>> truncate_output("abcdef", limit=3)
    'abc...[truncated]'
    >>> truncate_output(None)
    ''

    """
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def _elapsed(job: Job, finished_at: dt.datetime) -> float:
    return seconds_between(job.started_at, finished_at)


class QueueEventLogger:
    """Emit queue lifecycle events via femtologging.

    Parameters
    ----------
    logger
        Destination; defaults to this module's logger. Tests pass a
        recording double.

    """

    def __init__(self, logger: _SupportsLog | None = None) -> None:
        """Bind the event logger to its destination."""
        self._logger = logger if logger is not None else get_logger(__name__)

    def log_job_enqueued(self, job: Job, *, pending: int) -> None:
        """Log acceptance of *job*; *pending* counts jobs now waiting."""
        log_info(
            self._logger,
            "[%s] job_id=%d repo_slug=%s pending=%d",
            QueueEventType.JOB_ENQUEUED,
            job.id,
            job.ref.slug,
            pending,
        )

    def log_job_started(self, job: Job) -> None:
        """Log the worker picking up *job*."""
        waited = (
            seconds_between(job.enqueued_at, job.started_at)
            if job.started_at is not None
            else 0.0
        )
        log_info(
            self._logger,
            "[%s] job_id=%d repo_slug=%s waited_seconds=%.3f",
            QueueEventType.JOB_STARTED,
            job.id,
            job.ref.slug,
            waited,
        )

    def log_job_succeeded(
        self,
        job: Job,
        result: GeneratorResult,
        *,
        finished_at: dt.datetime,
    ) -> None:
        """Log a successful run."""
        log_info(
            self._logger,
            "[%s] job_id=%d repo_slug=%s duration_seconds=%.3f "
            "output_path=%s correlation_id=%s",
            QueueEventType.JOB_SUCCEEDED,
            job.id,
            job.ref.slug,
            _elapsed(job, finished_at),
            result.output_path,
            result.correlation_id,
        )

    def log_unregistered_output(self, job: Job, output_path: str) -> None:
        """Log a generated file whose name carries no summary identity."""
        log_warning(
            self._logger,
            "[%s] job_id=%d repo_slug=%s output_path=%s not registered: "
            "filename does not match <org>_<repo>_<YYYY-MM-DD>.md",
            QueueEventType.JOB_SUCCEEDED,
            job.id,
            job.ref.slug,
            output_path,
        )

    def log_generator_failed(
        self,
        job: Job,
        error: GeneratorExecutionError,
        *,
        finished_at: dt.datetime,
    ) -> None:
        """Log a failed generator run with bounded stdout and stderr."""
        log_error(
            self._logger,
            "[%s] job_id=%d repo_slug=%s duration_seconds=%.3f exit_status=%s "
            "error_message=%s stdout=%s stderr=%s",
            QueueEventType.JOB_GENERATOR_FAILED,
            job.id,
            job.ref.slug,
            _elapsed(job, finished_at),
            error.exit_status,
            str(error),
            truncate_output(error.stdout),
            truncate_output(error.stderr),
        )

    def log_generator_crashed(
        self,
        job: Job,
        error: BaseException,
        *,
        finished_at: dt.datetime,
    ) -> None:
        """Log an unexpected exception raised while generating."""
        log_error(
            self._logger,
            "[%s] job_id=%d repo_slug=%s duration_seconds=%.3f "
            "error_type=%s error_message=%s",
            QueueEventType.JOB_GENERATOR_FAILED,
            job.id,
            job.ref.slug,
            _elapsed(job, finished_at),
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_registration_failed(
        self,
        job: Job,
        output_path: str,
        error: BaseException,
        *,
        finished_at: dt.datetime,
    ) -> None:
        """Log a report that was generated but could not be indexed."""
        log_error(
            self._logger,
            "[%s] job_id=%d repo_slug=%s duration_seconds=%.3f output_path=%s "
            "error_type=%s error_message=%s",
            QueueEventType.JOB_REGISTRATION_FAILED,
            job.id,
            job.ref.slug,
            _elapsed(job, finished_at),
            output_path,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_job_abandoned(self, job: Job) -> None:
        """Log a job dropped by shutdown or by a stopped worker."""
        log_warning(
            self._logger,
            "[%s] job_id=%d repo_slug=%s",
            QueueEventType.JOB_ABANDONED,
            job.id,
            job.ref.slug,
        )

    def log_worker_stopped(self, *, abandoned: int) -> None:
        """Log the worker exiting before ``shutdown()`` asked it to."""
        log_error(
            self._logger,
            "[%s] abandoned=%d",
            QueueEventType.WORKER_STOPPED,
            abandoned,
        )
