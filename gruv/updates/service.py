"""Serialized repository updates on a single background worker.

``RepositoryUpdateQueue`` accepts update requests from any number of
coroutines, runs them one at a time in arrival order, and classifies each
run as ``succeeded``, ``generator_failed`` or ``registration_failed``.

Two delivery modes share the same worker:

- ``await queue.enqueue_and_wait(org, repo)`` returns the job's
  ``JobOutcome`` once it has run;
- ``queue.enqueue(org, repo)`` returns the pending ``Job`` immediately; the
  outcome is only logged, and progress is visible through ``status()``.

Usage
-----
>>> async with RepositoryUpdateQueue(
...     catalogue=catalogue,
...     generator_factory=command_generator_factory(GeneratorConfig.from_env()),
... ) as queue:
...     outcome = await queue.enqueue_and_wait("acme", "widgets")
>>> outcome.status
<JobStatus.SUCCEEDED: 'succeeded'>

"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import itertools
import typing as typ

from gruv.common.slug import RepositoryRef
from gruv.common.time import utcnow
from gruv.generation import GeneratorExecutionError

from .errors import QueueShutdownError, SummaryRegistrationError
from .models import Job, JobOutcome, JobStatus, QueueStatus
from .observability import QueueEventLogger

if typ.TYPE_CHECKING:
    import datetime as dt
    import types

    from gruv.catalogue import SummaryEntry
    from gruv.generation import GeneratorFactory, GeneratorResult


class SummaryRegistrar(typ.Protocol):
    """Port used by the worker to index a freshly generated report."""

    async def register_summary_from_path(self, path: str) -> SummaryEntry | None:
        """Index the report at *path*; ``None`` when its name is not a summary."""
        ...


@dc.dataclass(slots=True)
class _QueuedJob:
    job: Job
    future: asyncio.Future[JobOutcome]
    awaited: bool


def _abandon(queued: _QueuedJob, reason: str) -> None:
    if queued.future.done():
        return
    if queued.awaited:
        queued.future.set_exception(QueueShutdownError(reason))
    else:
        queued.future.cancel()


class RepositoryUpdateQueue:
    """FIFO of repository updates consumed by exactly one worker task.

    Parameters
    ----------
    catalogue
        Registrar receiving the report path after a successful run.
    generator_factory
        Builds a generator for an ``(organization, repository)`` pair.
    event_logger
        Structured event sink; a default ``QueueEventLogger`` when omitted.
    clock
        Source of job timestamps.

    Notes
    -----
    All methods must be called from the event loop that runs the worker.
    The pending mapping and the active slot are only changed synchronously,
    so a ``status()`` snapshot never shows a job as both pending and active.

    """

    def __init__(
        self,
        *,
        catalogue: SummaryRegistrar,
        generator_factory: GeneratorFactory,
        event_logger: QueueEventLogger | None = None,
        clock: typ.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Wire the queue to its collaborators; the worker is not started."""
        self._catalogue = catalogue
        self._generator_factory = generator_factory
        self._events = event_logger or QueueEventLogger()
        self._clock = clock
        self._queue: asyncio.Queue[_QueuedJob | None] = asyncio.Queue()
        self._pending: dict[int, _QueuedJob] = {}
        self._active: Job | None = None
        self._ids = itertools.count(1)
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        """Return whether the worker task is alive."""
        return self._worker is not None and not self._worker.done()

    @property
    def closed(self) -> bool:
        """Return whether the queue has stopped accepting jobs."""
        return self._closed

    def start(self) -> None:
        """Start the worker task if it is not already running.

        Raises
        ------
        QueueShutdownError
            If the queue has been shut down or its worker has stopped.

        """
        if self._closed:
            raise QueueShutdownError
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(
                self._run(), name="gruv-update-worker"
            )
        elif self._worker.done():
            self._close(log_stop=True)
            raise QueueShutdownError("update queue worker has stopped")

    def enqueue(self, organization: str | None, repository: str | None) -> Job:
        """Queue an update without waiting for it.

        Returns the pending job snapshot. The outcome is logged by the worker.

        Raises
        ------
        InvalidRepositoryError
            If either name is empty; no job is created.
        QueueShutdownError
            If the queue has been shut down.

        """
        ref = RepositoryRef.parse(organization, repository)
        return self._submit(ref, awaited=False).job

    async def enqueue_and_wait(
        self, organization: str | None, repository: str | None
    ) -> JobOutcome:
        """Queue an update and wait for its outcome.

        Cancelling the caller does not remove the job; it still runs.

        Raises
        ------
        InvalidRepositoryError
            If either name is empty; no job is created.
        QueueShutdownError
            If the queue is shut down before the job starts.

        """
        ref = RepositoryRef.parse(organization, repository)
        queued = self._submit(ref, awaited=True)
        return await asyncio.shield(queued.future)

    def status(self) -> QueueStatus:
        """Return a point-in-time snapshot of the active and pending jobs."""
        return QueueStatus(
            active_job=self._active,
            jobs=tuple(queued.job for queued in self._pending.values()),
        )

    async def drain(self) -> None:
        """Wait until every job queued so far has been processed."""
        if not self._closed:
            self.start()
        await self._queue.join()

    async def shutdown(self) -> None:
        """Stop accepting jobs and wait for the running one to finish.

        Jobs still pending are abandoned: waiting callers receive
        ``QueueShutdownError`` and fire-and-forget jobs are cancelled.
        Calling ``shutdown()`` again only waits for the worker to exit.
        If this call is cancelled the worker is cancelled with it and the
        running job's caller also receives ``QueueShutdownError``.
        """
        if not self._closed:
            self._close(log_stop=False)
            if self._worker is not None and not self._worker.done():
                self._queue.put_nowait(None)

        if self._worker is not None and not self._worker.done():
            await self._worker

    async def __aenter__(self) -> typ.Self:
        """Start the worker."""
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        """Shut the queue down."""
        await self.shutdown()

    def _close(self, *, log_stop: bool) -> None:
        self._closed = True
        abandoned = list(self._pending.values())
        self._pending.clear()
        if log_stop:
            self._events.log_worker_stopped(abandoned=len(abandoned))
        for queued in abandoned:
            self._events.log_job_abandoned(queued.job)
            _abandon(
                queued,
                f"update queue shut down before job {queued.job.id} started",
            )
        if self._worker is None or self._worker.done():
            self._discard_queued()

    def _discard_queued(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    def _submit(self, ref: RepositoryRef, *, awaited: bool) -> _QueuedJob:
        self.start()
        job = Job(id=next(self._ids), ref=ref, enqueued_at=self._clock())
        queued = _QueuedJob(
            job=job,
            future=asyncio.get_running_loop().create_future(),
            awaited=awaited,
        )
        self._pending[job.id] = queued
        self._queue.put_nowait(queued)
        self._events.log_job_enqueued(job, pending=len(self._pending))
        return queued

    async def _run(self) -> None:
        try:
            while True:
                queued = await self._queue.get()
                try:
                    if queued is None:
                        return
                    if self._pending.pop(queued.job.id, None) is None:
                        continue
                    await self._execute(queued)
                finally:
                    self._queue.task_done()
        finally:
            if not self._closed:
                self._close(log_stop=True)
            self._discard_queued()

    async def _execute(self, queued: _QueuedJob) -> None:
        job = queued.job.advance(JobStatus.RUNNING, started_at=self._clock())
        self._active = job
        try:
            self._events.log_job_started(job)
            outcome = await self._process(job)
        except BaseException:
            self._events.log_job_abandoned(job)
            _abandon(queued, f"update queue worker stopped while job {job.id} ran")
            raise
        finally:
            self._active = None
        if not queued.future.done():
            queued.future.set_result(outcome)

    async def _process(self, job: Job) -> JobOutcome:
        ref = job.ref
        try:
            generator = self._generator_factory(ref.organization, ref.repository)
            result = await generator.call()
        except GeneratorExecutionError as exc:
            self._events.log_generator_failed(job, exc, finished_at=self._clock())
            return JobOutcome(job=job.advance(JobStatus.GENERATOR_FAILED), error=exc)
        except Exception as exc:
            self._events.log_generator_crashed(job, exc, finished_at=self._clock())
            return JobOutcome(job=job.advance(JobStatus.GENERATOR_FAILED), error=exc)

        if result.output_path is not None:
            failure = await self._register(job, result, result.output_path)
            if failure is not None:
                return failure
        self._events.log_job_succeeded(job, result, finished_at=self._clock())
        return JobOutcome(job=job.advance(JobStatus.SUCCEEDED), result=result)

    async def _register(
        self, job: Job, result: GeneratorResult, path: str
    ) -> JobOutcome | None:
        try:
            entry = await self._catalogue.register_summary_from_path(path)
        except Exception as exc:
            error = SummaryRegistrationError(path, exc)
            self._events.log_registration_failed(
                job, path, exc, finished_at=self._clock()
            )
            return JobOutcome(
                job=job.advance(JobStatus.REGISTRATION_FAILED),
                result=result,
                error=error,
            )
        if entry is None:
            self._events.log_unregistered_output(job, path)
        return None
