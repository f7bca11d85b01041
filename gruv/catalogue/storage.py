"""Durable storage for catalogue entries.

Two tables back the catalogue: ``repositories`` holds one row per
organization/repository pair (matched case-insensitively, first spelling
wins) and ``summaries`` holds one row per repository and day. Models keep to
portable SQLAlchemy types so SQLite serves tests and local runs while any
async SQLAlchemy URL works in production.

Usage
-----
>>> from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
>>> engine = create_async_engine("sqlite+aiosqlite:///gruv.db")
>>> await init_catalogue_storage(engine)
>>> store = SqlAlchemySummaryStore(async_sessionmaker(engine, expire_on_commit=False))

"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from gruv.common.time import utcnow

from .models import SummaryEntry

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


class Base(DeclarativeBase):
    """Base declarative class for catalogue tables."""


class RepositoryRow(Base):
    """Repository known to the catalogue."""

    __tablename__ = "repositories"
    __table_args__ = (
        UniqueConstraint("organization", "name", name="uq_repositories_slug"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    organization: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    summaries: Mapped[list[SummaryRow]] = relationship(
        back_populates="repository", cascade="all, delete-orphan"
    )


class SummaryRow(Base):
    """One stored report for a repository and day."""

    __tablename__ = "summaries"
    __table_args__ = (
        UniqueConstraint(
            "repository_id", "summary_date", name="uq_summaries_repository_date"
        ),
        Index("ix_summaries_summary_date", "summary_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE")
    )
    summary_date: Mapped[dt.date] = mapped_column(Date())
    filename: Mapped[str] = mapped_column(String(512))
    locator: Mapped[str] = mapped_column(Text())
    registered_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    repository: Mapped[RepositoryRow] = relationship(back_populates="summaries")


async def init_catalogue_storage(engine: AsyncEngine) -> None:
    """Create catalogue tables if they do not already exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SummaryStore(typ.Protocol):
    """Port for the durable catalogue store."""

    async def upsert(self, entry: SummaryEntry) -> None:
        """Insert *entry* or replace the row with the same repository and date."""
        ...

    async def upsert_many(self, entries: cabc.Iterable[SummaryEntry]) -> None:
        """Upsert several entries atomically."""
        ...

    async def query_overview(self) -> list[SummaryEntry]:
        """Return every stored entry."""
        ...

    async def query_history(
        self, organization: str, repository: str
    ) -> list[SummaryEntry]:
        """Return entries for one repository, newest first."""
        ...

    async def query_one(
        self, organization: str, repository: str, date: dt.date
    ) -> SummaryEntry | None:
        """Return the entry for one repository and day, if stored."""
        ...

    async def is_empty(self) -> bool:
        """Return whether no summaries are stored."""
        ...


def _matches_repository(organization: str, repository: str) -> list[typ.Any]:
    return [
        func.lower(RepositoryRow.organization) == func.lower(organization),
        func.lower(RepositoryRow.name) == func.lower(repository),
    ]


def _to_entry(repository: RepositoryRow, summary: SummaryRow) -> SummaryEntry:
    return SummaryEntry(
        organization=repository.organization,
        repository=repository.name,
        date=summary.summary_date,
        filename=summary.filename,
        locator=summary.locator,
    )


async def _upsert_in(session: AsyncSession, entry: SummaryEntry) -> None:
    repository = await session.scalar(
        select(RepositoryRow)
        .where(*_matches_repository(entry.organization, entry.repository))
        .order_by(RepositoryRow.id)
        .limit(1)
    )
    if repository is None:
        repository = RepositoryRow(
            organization=entry.organization, name=entry.repository
        )
        session.add(repository)
        await session.flush()

    summary = await session.scalar(
        select(SummaryRow).where(
            SummaryRow.repository_id == repository.id,
            SummaryRow.summary_date == entry.date,
        )
    )
    if summary is None:
        session.add(
            SummaryRow(
                repository_id=repository.id,
                summary_date=entry.date,
                filename=entry.filename,
                locator=entry.locator,
            )
        )
    else:
        summary.filename = entry.filename
        summary.locator = entry.locator


class SqlAlchemySummaryStore:
    """``SummaryStore`` backed by async SQLAlchemy sessions.

    Parameters
    ----------
    session_factory
        Async session factory bound to an engine whose schema was created with
        :func:`init_catalogue_storage`.

    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for every operation."""
        self._session_factory = session_factory

    async def upsert(self, entry: SummaryEntry) -> None:
        """Insert or replace the summary keyed by repository and date.

        The repository row is matched case-insensitively and created on first
        sight, keeping the spelling of the first registration.
        """
        await self.upsert_many([entry])

    async def upsert_many(self, entries: cabc.Iterable[SummaryEntry]) -> None:
        """Upsert *entries* in one transaction; none are kept if any fails."""
        async with self._session_factory() as session, session.begin():
            for entry in entries:
                await _upsert_in(session, entry)

    async def query_overview(self) -> list[SummaryEntry]:
        """Return all entries ordered by repository, then newest first."""
        stmt = (
            select(RepositoryRow, SummaryRow)
            .join(SummaryRow, SummaryRow.repository_id == RepositoryRow.id)
            .order_by(
                func.lower(RepositoryRow.organization),
                func.lower(RepositoryRow.name),
                SummaryRow.summary_date.desc(),
            )
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [_to_entry(repository, summary) for repository, summary in rows]

    async def query_history(
        self, organization: str, repository: str
    ) -> list[SummaryEntry]:
        """Return one repository's entries, newest first."""
        stmt = (
            select(RepositoryRow, SummaryRow)
            .join(SummaryRow, SummaryRow.repository_id == RepositoryRow.id)
            .where(*_matches_repository(organization, repository))
            .order_by(SummaryRow.summary_date.desc())
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [_to_entry(repo_row, summary) for repo_row, summary in rows]

    async def query_one(
        self, organization: str, repository: str, date: dt.date
    ) -> SummaryEntry | None:
        """Return the entry for *date*, or ``None``."""
        stmt = (
            select(RepositoryRow, SummaryRow)
            .join(SummaryRow, SummaryRow.repository_id == RepositoryRow.id)
            .where(
                *_matches_repository(organization, repository),
                SummaryRow.summary_date == date,
            )
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).first()
        if row is None:
            return None
        repo_row, summary = row
        return _to_entry(repo_row, summary)

    async def is_empty(self) -> bool:
        """Return whether the ``summaries`` table has no rows."""
        async with self._session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(SummaryRow))
        return not count
