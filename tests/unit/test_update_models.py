"""Unit tests for update job records and the event logger."""

from __future__ import annotations

import datetime as dt

import pytest

from gruv.common.slug import RepositoryRef
from gruv.generation import GeneratorExecutionError, GeneratorResult
from gruv.updates import (
    InvalidJobTransitionError,
    Job,
    JobOutcome,
    JobStatus,
    QueueEventLogger,
    QueueEventType,
    QueueShutdownError,
    QueueStatus,
    SummaryRegistrationError,
    truncate_output,
)
from tests.helpers.updates import RecordingLogger

_ENQUEUED = dt.datetime(2024, 3, 16, 9, 0, tzinfo=dt.UTC)


@pytest.fixture
def job() -> Job:
    """Provide a pending job for acme/widgets."""
    return Job(
        id=7,
        ref=RepositoryRef.parse("acme", "widgets"),
        enqueued_at=_ENQUEUED,
    )


class TestJobTransitions:
    """Lifecycle transitions on ``Job``."""

    def test_pending_job_can_start(self, job: Job) -> None:
        """Starting records the start time and leaves the original untouched."""
        started_at = _ENQUEUED + dt.timedelta(seconds=5)
        running = job.advance(JobStatus.RUNNING, started_at=started_at)

        assert running.status is JobStatus.RUNNING
        assert running.started_at == started_at
        assert job.status is JobStatus.PENDING
        assert job.started_at is None

    @pytest.mark.parametrize(
        "terminal",
        [
            JobStatus.SUCCEEDED,
            JobStatus.GENERATOR_FAILED,
            JobStatus.REGISTRATION_FAILED,
        ],
    )
    def test_running_job_reaches_each_terminal_state(
        self, job: Job, terminal: JobStatus
    ) -> None:
        """Every terminal state is reachable from running."""
        finished = job.advance(JobStatus.RUNNING).advance(terminal)

        assert finished.status is terminal
        assert finished.status.is_terminal

    def test_pending_job_cannot_skip_running(self, job: Job) -> None:
        """A job must run before it can finish."""
        with pytest.raises(InvalidJobTransitionError) as excinfo:
            job.advance(JobStatus.SUCCEEDED)

        assert excinfo.value.current is JobStatus.PENDING
        assert excinfo.value.target is JobStatus.SUCCEEDED

    def test_terminal_job_is_final(self, job: Job) -> None:
        """Finished jobs never move again."""
        finished = job.advance(JobStatus.RUNNING).advance(JobStatus.SUCCEEDED)

        with pytest.raises(InvalidJobTransitionError):
            finished.advance(JobStatus.RUNNING)

    def test_non_terminal_states(self) -> None:
        """Pending and running are the only non-terminal states."""
        assert not JobStatus.PENDING.is_terminal
        assert not JobStatus.RUNNING.is_terminal


class TestSnapshots:
    """``JobOutcome`` and ``QueueStatus`` helpers."""

    def test_outcome_exposes_terminal_status(self, job: Job) -> None:
        """Outcome status mirrors the job."""
        finished = job.advance(JobStatus.RUNNING).advance(JobStatus.SUCCEEDED)
        outcome = JobOutcome(job=finished, result=GeneratorResult("", ""))

        assert outcome.status is JobStatus.SUCCEEDED
        assert outcome.succeeded

    def test_failed_outcome_is_not_success(self, job: Job) -> None:
        """Failure states do not count as success."""
        finished = job.advance(JobStatus.RUNNING).advance(JobStatus.GENERATOR_FAILED)
        outcome = JobOutcome(job=finished, error=RuntimeError("boom"))

        assert not outcome.succeeded

    def test_empty_status_is_idle(self) -> None:
        """A fresh snapshot has no work."""
        status = QueueStatus()

        assert status.size == 0
        assert status.idle

    def test_status_size_counts_pending_only(self, job: Job) -> None:
        """The active job does not count towards the size."""
        active = job.advance(JobStatus.RUNNING)
        waiting = Job(
            id=8, ref=RepositoryRef.parse("acme", "gadgets"), enqueued_at=_ENQUEUED
        )
        status = QueueStatus(active_job=active, jobs=(waiting,))

        assert status.size == 1
        assert not status.idle


class TestErrors:
    """Queue error types."""

    def test_registration_error_chains_cause(self) -> None:
        """The message names the path and the underlying failure."""
        cause = OSError("disk full")
        error = SummaryRegistrationError("/srv/acme_widgets_2024-03-16.md", cause)

        assert error.path == "/srv/acme_widgets_2024-03-16.md"
        assert error.__cause__ is cause
        assert str(error) == (
            "failed to register summary /srv/acme_widgets_2024-03-16.md: "
            "OSError: disk full"
        )

    def test_shutdown_error_has_default_reason(self) -> None:
        """The default reason is used as the message."""
        error = QueueShutdownError()

        assert error.reason == "update queue is shut down"
        assert str(error) == error.reason


class TestTruncation:
    """Bounding captured output in log lines."""

    def test_short_text_is_unchanged(self) -> None:
        """Text within the limit is returned as-is."""
        assert truncate_output("x" * 800) == "x" * 800

    def test_long_text_is_cut_and_marked(self) -> None:
        """Text over the limit keeps its prefix and gains a marker."""
        assert truncate_output("x" * 801) == "x" * 800 + "...[truncated]"

    @pytest.mark.parametrize("text", [None, ""])
    def test_missing_text_is_empty(self, text: str | None) -> None:
        """Absent output renders as an empty string."""
        assert truncate_output(text) == ""


class TestQueueEventLogger:
    """Formatting of queue events."""

    def test_enqueued_event(self, job: Job) -> None:
        """Enqueue events carry the job id, slug and pending count."""
        logger = RecordingLogger()
        QueueEventLogger(logger).log_job_enqueued(job, pending=3)

        assert logger.calls == [
            (
                "INFO",
                "[queue.job.enqueued] job_id=7 repo_slug=acme/widgets pending=3",
                None,
            )
        ]

    def test_started_event_reports_wait(self, job: Job) -> None:
        """Start events report the time spent waiting."""
        logger = RecordingLogger()
        running = job.advance(
            JobStatus.RUNNING, started_at=_ENQUEUED + dt.timedelta(seconds=2)
        )
        QueueEventLogger(logger).log_job_started(running)

        (message,) = logger.messages("INFO")
        assert message.endswith("waited_seconds=2.000")

    def test_succeeded_event_reports_duration(self, job: Job) -> None:
        """Success events report duration, output path and correlation id."""
        logger = RecordingLogger()
        running = job.advance(JobStatus.RUNNING, started_at=_ENQUEUED)
        result = GeneratorResult(
            stdout="",
            stderr="",
            correlation_id="thread-1",
            output_path="acme_widgets_2024-03-16.md",
        )
        QueueEventLogger(logger).log_job_succeeded(
            running, result, finished_at=_ENQUEUED + dt.timedelta(seconds=1.5)
        )

        (message,) = logger.messages("INFO")
        assert message.startswith(f"[{QueueEventType.JOB_SUCCEEDED}]")
        assert "duration_seconds=1.500" in message
        assert "output_path=acme_widgets_2024-03-16.md" in message
        assert "correlation_id=thread-1" in message

    def test_generator_failure_event(self, job: Job) -> None:
        """Generator failures include the exit status and both streams."""
        logger = RecordingLogger()
        error = GeneratorExecutionError(
            "generator exited with status 3",
            stdout="partial",
            stderr="e" * 900,
            exit_status=3,
        )
        QueueEventLogger(logger).log_generator_failed(
            job, error, finished_at=_ENQUEUED
        )

        (message,) = logger.messages("ERROR")
        assert "exit_status=3" in message
        assert "stdout=partial" in message
        assert message.endswith("e" * 800 + "...[truncated]")

    def test_crash_event_attaches_exception(self, job: Job) -> None:
        """Unexpected errors are logged with the exception attached."""
        logger = RecordingLogger()
        error = RuntimeError("boom")
        QueueEventLogger(logger).log_generator_crashed(
            job, error, finished_at=_ENQUEUED
        )

        ((level, message, exc_info),) = logger.calls
        assert level == "ERROR"
        assert "error_type=RuntimeError error_message=boom" in message
        assert exc_info is error

    def test_abandoned_event_is_a_warning(self, job: Job) -> None:
        """Jobs dropped at shutdown are logged as warnings."""
        logger = RecordingLogger()
        QueueEventLogger(logger).log_job_abandoned(job)

        assert logger.messages("WARNING") == [
            "[queue.job.abandoned] job_id=7 repo_slug=acme/widgets"
        ]

    def test_worker_stopped_event_is_an_error(self) -> None:
        """An unexpected worker exit is logged with the abandoned count."""
        logger = RecordingLogger()
        QueueEventLogger(logger).log_worker_stopped(abandoned=2)

        assert logger.messages("ERROR") == ["[queue.worker.stopped] abandoned=2"]
