"""Summary catalogue: index, storage, rendering and filename contract.

Quick example
-------------

>>> from pathlib import Path
>>> from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
>>> from gruv.catalogue import (
...     SqlAlchemySummaryStore,
...     SummaryCatalogue,
...     init_catalogue_storage,
... )
>>> engine = create_async_engine("sqlite+aiosqlite:///gruv.db")
>>> await init_catalogue_storage(engine)
>>> store = SqlAlchemySummaryStore(async_sessionmaker(engine, expire_on_commit=False))
>>> catalogue = SummaryCatalogue(store, root=Path("."))
>>> await catalogue.register_summary_from_path("acme_widgets_2024-03-16.md")
"""

from __future__ import annotations

from .config import CatalogueConfig
from .errors import CatalogueError, InvalidSummaryDateError, SummaryNotFoundError
from .filenames import (
    FILENAME_PATTERN,
    SummaryFilename,
    parse_summary_date,
    parse_summary_filename,
    summary_filename,
)
from .models import RepositoryOverview, SummaryEntry
from .rendering import MarkdownRenderer, decode_markdown
from .service import SummaryCatalogue
from .storage import SqlAlchemySummaryStore, SummaryStore, init_catalogue_storage

__all__ = [
    "FILENAME_PATTERN",
    "CatalogueConfig",
    "CatalogueError",
    "InvalidSummaryDateError",
    "MarkdownRenderer",
    "RepositoryOverview",
    "SqlAlchemySummaryStore",
    "SummaryCatalogue",
    "SummaryEntry",
    "SummaryFilename",
    "SummaryNotFoundError",
    "SummaryStore",
    "decode_markdown",
    "init_catalogue_storage",
    "parse_summary_date",
    "parse_summary_filename",
    "summary_filename",
]
