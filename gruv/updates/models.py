"""Job records and queue snapshots for repository updates."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt  # noqa: TC003
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from gruv.common.slug import RepositoryRef
    from gruv.generation import GeneratorResult


class JobStatus(enum.StrEnum):
    """Lifecycle of a queued update.

    ``PENDING → RUNNING → {SUCCEEDED | GENERATOR_FAILED | REGISTRATION_FAILED}``.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    GENERATOR_FAILED = "generator_failed"
    REGISTRATION_FAILED = "registration_failed"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further transition is possible."""
        return self not in {JobStatus.PENDING, JobStatus.RUNNING}


_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset(
        {
            JobStatus.SUCCEEDED,
            JobStatus.GENERATOR_FAILED,
            JobStatus.REGISTRATION_FAILED,
        }
    ),
}


class InvalidJobTransitionError(RuntimeError):
    """Raised when a job is moved backwards or skips ``running``."""

    def __init__(self, current: JobStatus, target: JobStatus) -> None:
        """Initialise with the rejected transition."""
        self.current = current
        self.target = target
        super().__init__(f"cannot move job from {current} to {target}")


@dc.dataclass(frozen=True, slots=True)
class Job:
    """Immutable snapshot of one queued update.

    Attributes
    ----------
    id
        Sequence number assigned at enqueue time; strictly increasing.
    ref
        Repository to update.
    enqueued_at
        When the queue accepted the job.
    status
        Current lifecycle state.
    started_at
        When the worker dequeued the job, once it has.

    """

    id: int
    ref: RepositoryRef
    enqueued_at: dt.datetime
    status: JobStatus = JobStatus.PENDING
    started_at: dt.datetime | None = None

    def advance(self, status: JobStatus, **changes: typ.Any) -> Job:
        """Return a copy moved to *status*.

        Raises
        ------
        InvalidJobTransitionError
            If *status* is not a forward step from the current state.

        """
        if status not in _ALLOWED_TRANSITIONS.get(self.status, frozenset()):
            raise InvalidJobTransitionError(self.status, status)
        return dc.replace(self, status=status, **changes)


@dc.dataclass(frozen=True, slots=True)
class JobOutcome:
    """Terminal result of a job.

    Attributes
    ----------
    job
        The job in its terminal state.
    result
        Generator result; present for ``succeeded`` and
        ``registration_failed``.
    error
        Failure cause; present for both failure states.

    """

    job: Job
    result: GeneratorResult | None = None
    error: BaseException | None = None

    @property
    def status(self) -> JobStatus:
        """Terminal status of the job."""
        return self.job.status

    @property
    def succeeded(self) -> bool:
        """Return whether the job finished in ``succeeded``."""
        return self.job.status is JobStatus.SUCCEEDED


@dc.dataclass(frozen=True, slots=True)
class QueueStatus:
    """Point-in-time view of the queue.

    Attributes
    ----------
    active_job
        Job the worker is running, if any.
    jobs
        Pending jobs in the order they will run. Never contains
        ``active_job``.

    """

    active_job: Job | None = None
    jobs: tuple[Job, ...] = ()

    @property
    def size(self) -> int:
        """Number of pending jobs."""
        return len(self.jobs)

    @property
    def idle(self) -> bool:
        """Return whether nothing is running or waiting."""
        return self.active_job is None and not self.jobs
