"""Liveness, readiness and service descriptor resources.

``HealthResource`` and ``ReadyResource`` are stateless. ``ReadyResource``
reports ``503`` once the update queue has been shut down, so a load
balancer stops routing generation requests to a stopping process.

Usage
-----
Register the endpoints on the Falcon app::

    from gruv.api.health.resources import (
        HealthResource,
        ReadyResource,
        ServiceInfoResource,
    )

    app.add_route("/", ServiceInfoResource())
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(update_queue))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gruv.updates import RepositoryUpdateQueue

__all__ = [
    "ENDPOINTS",
    "SERVICE_NAME",
    "HealthResource",
    "ReadyResource",
    "ServiceInfoResource",
]

SERVICE_NAME = "GitHub Repository Update Viewer API"
API_VERSION = "1.0"
ENDPOINTS = (
    "/repos",
    "/repos/:organization/:repository/latest",
    "/repos/:organization/:repository/history",
    "/repos/:organization/:repository/:date",
    "/repos/generate",
    "/repos/queue",
)


class ServiceInfoResource:
    """Describe the API: name, version and endpoint templates."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET / requests."""
        resp.media = {
            "name": SERVICE_NAME,
            "version": API_VERSION,
            "endpoints": list(ENDPOINTS),
        }
        resp.status = HTTPStatus.OK


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``.

    Always responds with HTTP 200 to indicate the process is alive.

    """

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with liveness status.

        """
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource.

    Responds ``{"status": "ready"}`` with HTTP 200 while the update queue
    accepts jobs, and ``{"status": "stopping"}`` with HTTP 503 after it has
    been shut down. Without a queue the service is always ready.

    """

    def __init__(self, update_queue: RepositoryUpdateQueue | None = None) -> None:
        """Configure the probe with the queue whose state it reports."""
        self._update_queue = update_queue

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._update_queue is not None and self._update_queue.closed:
            resp.media = {"status": "stopping"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
