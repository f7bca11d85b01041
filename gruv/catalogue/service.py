"""Summary catalogue: the index of dated repository reports.

``SummaryCatalogue`` answers lookups (overview, history, single day, latest),
reads and renders report files, and registers newly generated reports. The
first operation on an empty store seeds it from the Markdown files already
present in the catalogue root.

Usage
-----
>>> catalogue = SummaryCatalogue(store, root=Path("/srv/updates"))
>>> overview = await catalogue.list_repositories()
>>> entry = await catalogue.latest("acme", "widgets")
>>> html = await catalogue.html_for(entry)

"""

from __future__ import annotations

import asyncio
import itertools
import typing as typ
from pathlib import Path

from gruv.logging import get_logger, log_debug, log_info, log_warning

from .errors import SummaryNotFoundError
from .filenames import FILENAME_PATTERN, parse_summary_date, parse_summary_filename
from .models import RepositoryOverview, SummaryEntry
from .rendering import MarkdownRenderer, decode_markdown

if typ.TYPE_CHECKING:
    import os

    from .storage import SummaryStore

logger = get_logger(__name__)


class SummaryCatalogue:
    """Index of Markdown reports keyed by repository and date.

    Parameters
    ----------
    store
        Durable store for entries.
    root
        Directory holding the report files. Relative locators resolve
        against it.
    renderer
        Markdown-to-HTML renderer; a default ``MarkdownRenderer`` is built
        when omitted.

    """

    def __init__(
        self,
        store: SummaryStore,
        *,
        root: Path,
        renderer: MarkdownRenderer | None = None,
    ) -> None:
        """Bind the catalogue to its store, report directory and renderer."""
        self._store = store
        self._root = Path(root)
        self._renderer = renderer or MarkdownRenderer()
        self._seed_lock = asyncio.Lock()
        self._seeded = False

    @property
    def root(self) -> Path:
        """Directory holding the report files."""
        return self._root

    async def list_repositories(self) -> list[RepositoryOverview]:
        """Return one overview per repository.

        Repositories are ordered by organization then name, ignoring case;
        ``available_dates`` is newest first.
        """
        await self.ensure_seeded()
        entries = await self._store.query_overview()

        def group_key(entry: SummaryEntry) -> tuple[str, str]:
            return (entry.organization.casefold(), entry.repository.casefold())

        overviews: list[RepositoryOverview] = []
        for _, group in itertools.groupby(sorted(entries, key=group_key), group_key):
            history = sorted(group, key=lambda entry: entry.date, reverse=True)
            latest = history[0]
            overviews.append(
                RepositoryOverview(
                    organization=latest.organization,
                    repository=latest.repository,
                    latest_date=latest.date,
                    latest_filename=latest.filename,
                    available_dates=tuple(entry.date for entry in history),
                )
            )
        return overviews

    async def history(self, organization: str, repository: str) -> list[SummaryEntry]:
        """Return every entry for a repository, newest first.

        Raises
        ------
        SummaryNotFoundError
            If the repository has no entries.

        """
        await self.ensure_seeded()
        entries = await self._store.query_history(organization, repository)
        if not entries:
            raise SummaryNotFoundError(organization, repository)
        return sorted(entries, key=lambda entry: entry.date, reverse=True)

    async def latest(self, organization: str, repository: str) -> SummaryEntry:
        """Return the newest entry for a repository.

        Raises
        ------
        SummaryNotFoundError
            If the repository has no entries.

        """
        return (await self.history(organization, repository))[0]

    async def entry_for(
        self, organization: str, repository: str, date: str
    ) -> SummaryEntry:
        """Return the entry for one ``YYYY-MM-DD`` date.

        Raises
        ------
        InvalidSummaryDateError
            If *date* is not an ISO calendar date.
        SummaryNotFoundError
            If the repository or the date is unknown.

        """
        day = parse_summary_date(date)
        await self.ensure_seeded()
        entry = await self._store.query_one(organization, repository, day)
        if entry is None:
            raise SummaryNotFoundError(organization, repository, date=day)
        return entry

    def path_for(self, entry: SummaryEntry) -> Path:
        """Resolve the file backing *entry*."""
        locator = Path(entry.locator)
        return locator if locator.is_absolute() else self._root / locator

    async def markdown_for(self, entry: SummaryEntry) -> str:
        """Read the report text, replacing invalid UTF-8 sequences.

        Raises
        ------
        SummaryNotFoundError
            If the indexed file no longer exists.

        """
        path = self.path_for(entry)
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise SummaryNotFoundError(
                entry.organization,
                entry.repository,
                date=entry.date,
                reason="Summary file missing",
            ) from exc
        return decode_markdown(raw)

    async def html_for(self, entry: SummaryEntry) -> str:
        """Read the report and render it as HTML."""
        return self.render_html(await self.markdown_for(entry))

    def render_html(self, markdown: str) -> str:
        """Render already-loaded report text as HTML."""
        return self._renderer.render(markdown)

    async def register_summary_from_path(
        self, path: str | os.PathLike[str]
    ) -> SummaryEntry | None:
        """Index the report at *path* if its filename carries an identity.

        Returns the stored entry, or ``None`` without touching the store when
        the filename does not match ``<org>_<repo>_<YYYY-MM-DD>.md``. An
        existing entry for the same repository and day is replaced.
        """
        entry = self._entry_for_path(Path(path))
        if entry is None:
            return None
        await self.ensure_seeded()
        await self._store.upsert(entry)
        _log_registered(entry)
        return entry

    async def ensure_seeded(self) -> None:
        """Seed an empty store from the report directory, once.

        Seeding is a single transaction, so a failed attempt leaves the store
        empty and the next call tries again.
        """
        if self._seeded:
            return
        async with self._seed_lock:
            if self._seeded:
                return
            if await self._store.is_empty():
                await self._seed_from_root()
            self._seeded = True

    async def _seed_from_root(self) -> None:
        paths = await asyncio.to_thread(self._discover_reports)
        entries = [
            entry for path in paths if (entry := self._entry_for_path(path)) is not None
        ]
        await self._store.upsert_many(entries)
        for entry in entries:
            _log_registered(entry)
        log_info(
            logger,
            "Seeded catalogue from %s: registered=%d",
            self._root,
            len(entries),
        )

    def _discover_reports(self) -> list[Path]:
        if not self._root.is_dir():
            log_warning(logger, "Catalogue root %s is not a directory", self._root)
            return []
        return sorted(
            path
            for path in self._root.glob("*.md")
            if path.is_file() and FILENAME_PATTERN.match(path.name)
        )

    def _entry_for_path(self, path: Path) -> SummaryEntry | None:
        parsed = parse_summary_filename(path.name)
        if parsed is None:
            log_debug(logger, "Ignoring non-summary file %s", path)
            return None
        return SummaryEntry(
            organization=parsed.organization,
            repository=parsed.repository,
            date=parsed.date,
            filename=path.name,
            locator=self._locator_for(path),
        )

    def _locator_for(self, path: Path) -> str:
        resolved = path.resolve()
        try:
            return resolved.relative_to(self._root.resolve()).as_posix()
        except ValueError:
            return str(resolved)


def _log_registered(entry: SummaryEntry) -> None:
    log_info(
        logger,
        "Registered summary %s/%s date=%s locator=%s",
        entry.organization,
        entry.repository,
        entry.date.isoformat(),
        entry.locator,
    )
