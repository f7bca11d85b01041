"""Unit tests for gruv.api.middleware.ServiceLifecycle.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_middleware.py

"""

from __future__ import annotations

from unittest import mock

import falcon.asgi
import falcon.testing
import pytest

from gruv.api.middleware import ServiceLifecycle
from gruv.updates import QueueEventLogger, RepositoryUpdateQueue
from tests.helpers.updates import RecordingLogger, StubGeneratorFactory


class _Recorder:
    """Collects the order in which lifecycle steps run."""

    def __init__(self) -> None:
        self.steps: list[str] = []

    def hook(self, name: str) -> mock.AsyncMock:
        return mock.AsyncMock(side_effect=lambda: self.steps.append(name))


@pytest.fixture
def recorder() -> _Recorder:
    """Provide a step recorder."""
    return _Recorder()


@pytest.fixture
def update_queue() -> RepositoryUpdateQueue:
    """Provide an idle queue with a stub generator."""
    return RepositoryUpdateQueue(
        catalogue=mock.MagicMock(),
        generator_factory=StubGeneratorFactory(),
        event_logger=QueueEventLogger(RecordingLogger()),
    )


@pytest.fixture
def lifecycle(
    recorder: _Recorder, update_queue: RepositoryUpdateQueue
) -> ServiceLifecycle:
    """Build the middleware with recording hooks and catalogue."""
    catalogue = mock.MagicMock()
    catalogue.ensure_seeded = recorder.hook("seed")
    return ServiceLifecycle(
        catalogue=catalogue,
        update_queue=update_queue,
        startup_hooks=(recorder.hook("create tables"),),
        shutdown_hooks=(recorder.hook("dispose engine"),),
    )


class TestServiceLifecycle:
    """Lifespan startup and shutdown."""

    @pytest.mark.asyncio
    async def test_startup_prepares_storage_then_starts_worker(
        self,
        lifecycle: ServiceLifecycle,
        recorder: _Recorder,
        update_queue: RepositoryUpdateQueue,
    ) -> None:
        """Hooks run before seeding and the worker starts last."""
        await lifecycle.process_startup({}, {})
        try:
            assert recorder.steps == ["create tables", "seed"]
            assert update_queue.running
        finally:
            await update_queue.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_stops_queue_before_hooks(
        self,
        lifecycle: ServiceLifecycle,
        recorder: _Recorder,
        update_queue: RepositoryUpdateQueue,
    ) -> None:
        """Resources are released only after the worker has exited."""
        await lifecycle.process_startup({}, {})
        await lifecycle.process_shutdown({}, {})

        assert recorder.steps[-1] == "dispose engine"
        assert update_queue.closed
        assert not update_queue.running

    @pytest.mark.asyncio
    async def test_lifespan_is_driven_by_the_app(
        self,
        lifecycle: ServiceLifecycle,
        recorder: _Recorder,
        update_queue: RepositoryUpdateQueue,
    ) -> None:
        """Falcon invokes the middleware on ASGI lifespan events."""
        app = falcon.asgi.App(middleware=[lifecycle])

        async with falcon.testing.ASGIConductor(app):
            assert update_queue.running

        assert recorder.steps == ["create tables", "seed", "dispose engine"]
        assert update_queue.closed
