"""Client-facing exceptions and Falcon error handlers.

Every handler writes a ``{"title", "description", "error"}`` JSON body;
``error`` repeats the description for browser clients that only read that
key. Domain errors keep their message; anything unexpected is logged with
its traceback and answered with an opaque 500.

Usage
-----
Register the handlers on the Falcon app::

    from gruv.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from gruv.catalogue import InvalidSummaryDateError, SummaryNotFoundError
from gruv.common.slug import InvalidRepositoryError
from gruv.logging import get_logger, log_exception
from gruv.updates import QueueShutdownError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "InvalidInputError",
    "handle_invalid_date",
    "handle_invalid_input",
    "handle_invalid_repository",
    "handle_queue_shutdown",
    "handle_summary_not_found",
    "handle_unexpected_error",
    "register_error_handlers",
]

logger = get_logger(__name__)


class InvalidInputError(Exception):
    """Raised for malformed request bodies or parameters (HTTP 400).

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


def _error_media(title: str, description: str) -> dict[str, str]:
    return {"title": title, "description": description, "error": description}


def _bad_request(resp: Response, description: str, field: str | None) -> None:
    resp.status = falcon.HTTP_400
    media = _error_media("Invalid input", description)
    if field is not None:
        media["field"] = field
    resp.media = media


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    _bad_request(resp, ex.reason, ex.field)


async def handle_invalid_repository(
    _req: Request,
    resp: Response,
    ex: InvalidRepositoryError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidRepositoryError`` to an HTTP 400 JSON response."""
    _bad_request(resp, ex.reason, ex.field)


async def handle_invalid_date(
    _req: Request,
    resp: Response,
    ex: InvalidSummaryDateError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidSummaryDateError`` to an HTTP 400 JSON response."""
    _bad_request(resp, str(ex), "date")


async def handle_summary_not_found(
    _req: Request,
    resp: Response,
    ex: SummaryNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``SummaryNotFoundError`` to an HTTP 404 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The lookup miss, naming the repository and optional date.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_404
    resp.media = _error_media("Not found", str(ex))


async def handle_queue_shutdown(
    _req: Request,
    resp: Response,
    ex: QueueShutdownError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``QueueShutdownError`` to an HTTP 503 JSON response."""
    resp.status = falcon.HTTP_503
    resp.media = _error_media("Service unavailable", ex.reason)


async def handle_unexpected_error(
    req: Request,
    resp: Response,
    ex: Exception,
    _params: dict[str, typ.Any],
) -> None:
    """Log *ex* with its traceback and answer with an opaque HTTP 500."""
    log_exception(
        logger,
        f"Unhandled error serving {req.method} {req.path}: {type(ex).__name__}",
        ex,
    )
    resp.status = falcon.HTTP_500
    resp.media = _error_media("Internal server error", "An unexpected error occurred.")


def register_error_handlers(app: App) -> None:
    """Install every gruv error handler on *app*.

    Falcon picks the most specific handler, so the catch-all ``Exception``
    handler does not shadow Falcon's own ``HTTPError`` handling.
    """
    app.add_error_handler(Exception, handle_unexpected_error)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(InvalidRepositoryError, handle_invalid_repository)
    app.add_error_handler(InvalidSummaryDateError, handle_invalid_date)
    app.add_error_handler(SummaryNotFoundError, handle_summary_not_found)
    app.add_error_handler(QueueShutdownError, handle_queue_shutdown)
