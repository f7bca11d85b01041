"""ASGI lifespan middleware tying the update queue to the server process.

On ``lifespan.startup`` the middleware runs the configured startup hooks
(for example creating database tables), seeds the catalogue from the report
directory and starts the queue worker. On ``lifespan.shutdown`` it shuts the
queue down, waiting for the running job, and then runs the shutdown hooks
(for example disposing the database engine).

Usage
-----
Register the middleware when creating the Falcon app::

    lifecycle = ServiceLifecycle(
        catalogue=catalogue,
        update_queue=update_queue,
        shutdown_hooks=(engine.dispose,),
    )
    app = falcon.asgi.App(middleware=[lifecycle])

"""

from __future__ import annotations

import typing as typ

from gruv.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from gruv.catalogue import SummaryCatalogue
    from gruv.updates import RepositoryUpdateQueue

__all__ = ["LifecycleHook", "ServiceLifecycle"]

logger = get_logger(__name__)

type LifecycleHook = typ.Callable[[], typ.Awaitable[None]]


class ServiceLifecycle:
    """Falcon middleware handling ASGI lifespan events.

    Parameters
    ----------
    catalogue
        Catalogue seeded during startup.
    update_queue
        Queue started on startup and shut down on shutdown.
    startup_hooks
        Coroutine functions awaited, in order, before seeding.
    shutdown_hooks
        Coroutine functions awaited, in order, after the queue stops.

    """

    def __init__(
        self,
        *,
        catalogue: SummaryCatalogue,
        update_queue: RepositoryUpdateQueue,
        startup_hooks: typ.Sequence[LifecycleHook] = (),
        shutdown_hooks: typ.Sequence[LifecycleHook] = (),
    ) -> None:
        """Initialize the middleware with its collaborators and hooks."""
        self._catalogue = catalogue
        self._update_queue = update_queue
        self._startup_hooks = tuple(startup_hooks)
        self._shutdown_hooks = tuple(shutdown_hooks)

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Prepare storage, seed the catalogue and start the worker."""
        for hook in self._startup_hooks:
            await hook()
        await self._catalogue.ensure_seeded()
        self._update_queue.start()
        log_info(
            logger,
            "Update queue started; catalogue root %s",
            self._catalogue.root,
        )

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop the worker after its current job, then release resources."""
        pending = self._update_queue.status().size
        await self._update_queue.shutdown()
        log_info(
            logger,
            "Update queue stopped; abandoned %d pending job(s)",
            pending,
        )
        for hook in self._shutdown_hooks:
            await hook()
