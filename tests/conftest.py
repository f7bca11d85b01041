"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gruv.catalogue import (
    SqlAlchemySummaryStore,
    SummaryCatalogue,
    init_catalogue_storage,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine with the catalogue tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gruv_test.db'}")
    try:
        await init_catalogue_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = await _setup_sqlite(tmp_path)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def reports_root(tmp_path: Path) -> Path:
    """Return an empty directory used as the catalogue root."""
    root = tmp_path / "updates"
    root.mkdir()
    return root


@pytest.fixture
def store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlAlchemySummaryStore:
    """Return a summary store bound to the test database."""
    return SqlAlchemySummaryStore(session_factory)


@pytest.fixture
def catalogue(store: SqlAlchemySummaryStore, reports_root: Path) -> SummaryCatalogue:
    """Return a catalogue over the test store and report directory."""
    return SummaryCatalogue(store, root=reports_root)
