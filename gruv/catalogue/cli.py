"""Import existing Markdown reports into the catalogue index.

Walks a directory tree for ``<organization>_<repository>_<YYYY-MM-DD>.md``
files and registers each one. Registration replaces any entry for the same
repository and day, so the import can be re-run safely.

Usage
-----
::

    gruv-import-markdown --root /srv/updates
    gruv-import-markdown --root /srv/updates --database sqlite+aiosqlite:///idx.db
    gruv-import-markdown --dry-run

"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses as dc
import sys
import typing as typ
from pathlib import Path

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from .config import CatalogueConfig, default_database_url
from .filenames import FILENAME_PATTERN, parse_summary_filename
from .service import SummaryCatalogue
from .storage import SqlAlchemySummaryStore, init_catalogue_storage


@dc.dataclass(slots=True)
class ImportReport:
    """Counts gathered by one import run."""

    processed: int = 0
    migrated: int = 0
    skipped: list[Path] = dc.field(default_factory=list)


def discover_markdown_paths(root: Path) -> list[Path]:
    """Return every summary file beneath *root*, sorted."""
    return sorted(
        path
        for path in root.rglob("*.md")
        if path.is_file() and FILENAME_PATTERN.match(path.name)
    )


def database_url_for(raw: str | None, root: Path) -> str:
    """Accept a SQLAlchemy URL or a bare SQLite file path."""
    if not raw:
        return default_database_url(root)
    if "://" in raw:
        return raw
    return f"sqlite+aiosqlite:///{Path(raw).expanduser().resolve()}"


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


async def import_markdown(
    root: Path,
    database_url: str,
    *,
    dry_run: bool = False,
    echo: typ.Callable[[str], None] | None = None,
) -> ImportReport:
    """Register every summary file under *root* into *database_url*.

    Parameters
    ----------
    root
        Directory searched recursively; also the catalogue root, so files
        beneath it are stored with relative locators.
    database_url
        Async SQLAlchemy URL of the index.
    dry_run
        Report what would be imported without touching the database.
    echo
        Receives one progress line per file; silent when ``None``.

    """
    report = ImportReport()
    paths = discover_markdown_paths(root)
    report.processed = len(paths)
    say = echo or (lambda _line: None)
    if not paths:
        say("No markdown files matching the expected pattern were found.")
        return report

    if dry_run:
        for path in paths:
            parsed = parse_summary_filename(path.name)
            if parsed is None:
                report.skipped.append(path)
                continue
            say(
                f"[DRY RUN] Would import {parsed.organization}/{parsed.repository} "
                f"{parsed.date.isoformat()} ({_relative(path, root)})"
            )
            report.migrated += 1
        return report

    engine = create_async_engine(database_url)
    try:
        await init_catalogue_storage(engine)
        sessions = async_sessionmaker(engine, expire_on_commit=False)
        store = SqlAlchemySummaryStore(sessions)
        catalogue = SummaryCatalogue(store, root=root)
        for path in paths:
            try:
                entry = await catalogue.register_summary_from_path(path)
            except Exception as exc:
                report.skipped.append(path)
                print(
                    f"Failed to import {path}: {type(exc).__name__} - {exc}",
                    file=sys.stderr,
                )
                continue
            if entry is None:
                report.skipped.append(path)
                continue
            say(
                f"Imported {entry.organization}/{entry.repository} "
                f"{entry.date.isoformat()} ({entry.locator})"
            )
            report.migrated += 1
    finally:
        await engine.dispose()
    return report


def main(argv: list[str] | None = None) -> int:
    """Run the Markdown import.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: always 0; per-file failures are listed as skipped.

    """
    defaults = CatalogueConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Import Markdown summaries into the gruv catalogue index."
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=defaults.root,
        help="Directory searched recursively for summary files",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="Database URL or SQLite file path (default: <root>/gruv.db, "
        "or GRUV_DATABASE_URL)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List what would be imported without writing",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Print one line per imported file",
    )
    args = parser.parse_args(argv)

    root: Path = args.root.expanduser().resolve()
    raw_database = args.database
    if raw_database is None and root == defaults.root:
        raw_database = defaults.database_url
    database_url = database_url_for(raw_database, root)

    report = asyncio.run(
        import_markdown(
            root,
            database_url,
            dry_run=args.dry_run,
            echo=print if args.verbose else None,
        )
    )

    print("--- Import complete ---")
    print(f"Processed files: {report.processed}")
    print(f"Imported entries: {report.migrated}")
    if report.skipped:
        print(f"Skipped files ({len(report.skipped)}):")
        for path in report.skipped:
            print(f"  - {_relative(path, root)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
