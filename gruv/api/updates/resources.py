"""Update queue resources.

``POST /repos/generate`` submits a repository to the update queue. The body
names the repository either directly or by GitHub URL::

    {"organization": "acme", "repository": "widgets"}
    {"url": "https://github.com/acme/widgets.git"}

By default the request waits for the job and answers with its outcome.
``?wait=false`` returns ``202 Accepted`` with the pending job instead; the
outcome is then only logged. ``GET /repos/queue`` shows what is running and
what is waiting.

"""

from __future__ import annotations

import typing as typ
from pathlib import PurePath

import falcon
import msgspec

from gruv.api.errors import InvalidInputError
from gruv.common.slug import RepositoryRef
from gruv.generation import GeneratorExecutionError
from gruv.updates import JobStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gruv.updates import Job, JobOutcome, QueueStatus, RepositoryUpdateQueue

__all__ = [
    "GenerateRequest",
    "GenerateResource",
    "QueueStatusResource",
    "serialize_job",
    "serialize_outcome",
    "serialize_queue_status",
]


class GenerateRequest(msgspec.Struct, kw_only=True):
    """Body of ``POST /repos/generate``."""

    organization: str | None = None
    repository: str | None = None
    url: str | None = None

    def to_ref(self) -> RepositoryRef:
        """Resolve the body to a repository reference.

        A ``url`` takes precedence over the separate fields.

        Raises
        ------
        InvalidRepositoryError
            If the names are empty or the URL is not a GitHub repository.

        """
        if self.url is not None and self.url.strip():
            return RepositoryRef.from_url(self.url)
        return RepositoryRef.parse(self.organization, self.repository)


def serialize_job(job: Job) -> dict[str, typ.Any]:
    """Serialize a job snapshot to a JSON-compatible dict."""
    return {
        "id": job.id,
        "organization": job.ref.organization,
        "repository": job.ref.repository,
        "status": job.status.value,
        "enqueued_at": job.enqueued_at.isoformat(),
        "started_at": job.started_at.isoformat() if job.started_at else None,
    }


def serialize_queue_status(status: QueueStatus) -> dict[str, typ.Any]:
    """Serialize a queue snapshot to a JSON-compatible dict."""
    return {
        "size": status.size,
        "active_job": (
            serialize_job(status.active_job) if status.active_job is not None else None
        ),
        "jobs": [serialize_job(job) for job in status.jobs],
    }


def _filename(path: str | None) -> str | None:
    return PurePath(path).name if path else None


def serialize_outcome(outcome: JobOutcome) -> tuple[str, dict[str, typ.Any]]:
    """Return the HTTP status and body describing *outcome*.

    The body carries ``message`` on success and ``error`` on failure, plus
    ``repository``, ``output_path``, ``output_filename``, ``thread_id``,
    ``stdout`` and ``stderr`` whenever the generator produced a result.
    Generator failures expose the command's captured output and exit status
    only when the command itself failed; any other error stays opaque.
    """
    job = outcome.job
    slug = job.ref.slug
    media: dict[str, typ.Any] = {
        "status": outcome.status.value,
        "job": serialize_job(job),
        "repository": {
            "organization": job.ref.organization,
            "repository": job.ref.repository,
            "name": job.ref.repository,
        },
    }
    result = outcome.result
    if result is not None:
        media.update(
            output_path=result.output_path,
            output_filename=_filename(result.output_path),
            thread_id=result.correlation_id,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    if outcome.status is JobStatus.SUCCEEDED:
        media["message"] = f"Summary generated for {slug}"
        return falcon.HTTP_200, media

    if outcome.status is JobStatus.REGISTRATION_FAILED:
        description = str(outcome.error)
        media.update(
            title="Summary registration failed",
            description=description,
            error=f"Summary generated for {slug} but not indexed: {description}",
            generated=True,
        )
        return falcon.HTTP_500, media

    error = outcome.error
    if isinstance(error, GeneratorExecutionError):
        media.update(
            title="Summary generation failed",
            description=str(error),
            error=f"Summary generation failed for {slug}: {error}",
            stdout=error.stdout,
            stderr=error.stderr,
            exit_status=error.exit_status,
        )
    else:
        media.update(
            title="Summary generation failed",
            description="An unexpected error occurred while generating the summary.",
            error=f"Summary generation failed for {slug}.",
        )
    return falcon.HTTP_500, media


async def _read_request(req: Request) -> GenerateRequest:
    raw = await req.stream.read()
    if not raw.strip():
        msg = "request body must be a JSON object"
        raise InvalidInputError(msg)
    try:
        return msgspec.json.decode(raw, type=GenerateRequest)
    except msgspec.ValidationError as exc:
        raise InvalidInputError(str(exc)) from exc
    except msgspec.DecodeError as exc:
        msg = f"malformed JSON: {exc}"
        raise InvalidInputError(msg) from exc


class GenerateResource:
    """``POST /repos/generate``."""

    def __init__(self, update_queue: RepositoryUpdateQueue) -> None:
        """Configure the resource with the queue it submits to."""
        self._update_queue = update_queue

    async def on_post(self, req: Request, resp: Response) -> None:
        """Queue a repository update.

        Parameters
        ----------
        req
            Falcon request carrying a ``GenerateRequest`` JSON body and an
            optional ``wait`` boolean query parameter (default ``true``).
        resp
            Falcon response; 200 or 500 with the outcome when waiting, 202
            with the job snapshot otherwise.

        Raises
        ------
        InvalidInputError
            If the body is not a JSON object of the expected shape.
        InvalidRepositoryError
            If the repository cannot be identified.
        QueueShutdownError
            If the queue no longer accepts jobs.

        """
        body = await _read_request(req)
        ref = body.to_ref()
        wait = req.get_param_as_bool("wait", default=True)

        if not wait:
            job = self._update_queue.enqueue(ref.organization, ref.repository)
            resp.media = {
                "job": serialize_job(job),
                "queue": serialize_queue_status(self._update_queue.status()),
            }
            resp.status = falcon.HTTP_202
            return

        outcome = await self._update_queue.enqueue_and_wait(
            ref.organization, ref.repository
        )
        resp.status, resp.media = serialize_outcome(outcome)


class QueueStatusResource:
    """``GET /repos/queue``."""

    def __init__(self, update_queue: RepositoryUpdateQueue) -> None:
        """Configure the resource with the queue it reports on."""
        self._update_queue = update_queue

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Return the running job and the pending jobs in run order."""
        resp.media = serialize_queue_status(self._update_queue.status())
        resp.status = falcon.HTTP_200
