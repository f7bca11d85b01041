"""Application factory for the gruv Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with probe endpoints and, when catalogue and queue
dependencies are supplied, the catalogue and update endpoints. Browser
clients on other origins are served through ``falcon.CORSMiddleware``,
which also answers ``OPTIONS`` preflight requests.

Usage
-----
Create a probe-only app::

    app = create_app()

Create a full app::

    from gruv.api.app import AppDependencies, create_app

    deps = AppDependencies(catalogue=catalogue, update_queue=update_queue)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon
import falcon.asgi

from gruv.api.config import ApiConfig
from gruv.api.errors import register_error_handlers
from gruv.api.health.resources import (
    HealthResource,
    ReadyResource,
    ServiceInfoResource,
)

if typ.TYPE_CHECKING:
    from gruv.api.middleware import LifecycleHook
    from gruv.catalogue import SummaryCatalogue
    from gruv.updates import RepositoryUpdateQueue

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    catalogue
        Summary catalogue serving the read endpoints.
    update_queue
        Queue receiving generation requests.
    startup_hooks
        Coroutine functions awaited on ASGI lifespan startup.
    shutdown_hooks
        Coroutine functions awaited on ASGI lifespan shutdown, after the
        queue has stopped.

    """

    catalogue: SummaryCatalogue
    update_queue: RepositoryUpdateQueue
    startup_hooks: tuple[LifecycleHook, ...] = ()
    shutdown_hooks: tuple[LifecycleHook, ...] = ()


def create_app(
    dependencies: AppDependencies | None = None,
    *,
    config: ApiConfig | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, only ``/``,
        ``/health`` and ``/ready`` are available.
    config
        Cross-origin settings; every origin is allowed when omitted.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    config = config or ApiConfig()
    middleware: list[object] = [
        falcon.CORSMiddleware(
            allow_origins=config.cors_origins, expose_headers=["Content-Length"]
        )
    ]
    if dependencies is not None:
        from gruv.api.middleware import ServiceLifecycle

        middleware.append(
            ServiceLifecycle(
                catalogue=dependencies.catalogue,
                update_queue=dependencies.update_queue,
                startup_hooks=dependencies.startup_hooks,
                shutdown_hooks=dependencies.shutdown_hooks,
            )
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/", ServiceInfoResource())
    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready",
        ReadyResource(dependencies.update_queue if dependencies else None),
    )

    if dependencies is not None:
        _add_domain_routes(app, dependencies)

    register_error_handlers(app)
    return app


def _add_domain_routes(app: falcon.asgi.App, dependencies: AppDependencies) -> None:
    from gruv.api.catalogue.resources import (
        DatedSummaryResource,
        HistoryResource,
        LatestSummaryResource,
        RepositoryListResource,
    )
    from gruv.api.updates.resources import GenerateResource, QueueStatusResource

    catalogue = dependencies.catalogue
    update_queue = dependencies.update_queue

    app.add_route("/repos", RepositoryListResource(catalogue))
    app.add_route("/repos/generate", GenerateResource(update_queue))
    app.add_route("/repos/queue", QueueStatusResource(update_queue))
    app.add_route(
        "/repos/{organization}/{repository}/latest",
        LatestSummaryResource(catalogue),
    )
    app.add_route(
        "/repos/{organization}/{repository}/history",
        HistoryResource(catalogue),
    )
    app.add_route(
        "/repos/{organization}/{repository}/{date}",
        DatedSummaryResource(catalogue),
    )
