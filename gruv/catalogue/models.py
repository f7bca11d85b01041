"""Typed catalogue records."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ

import msgspec


class SummaryEntry(msgspec.Struct, kw_only=True, frozen=True):
    """One dated Markdown report for a repository.

    Attributes
    ----------
    organization : str
        Organization as recorded when the repository was first registered.
    repository : str
        Repository name as first registered.
    date : datetime.date
        Day the report covers.
    filename : str
        Basename of the Markdown file.
    locator : str
        Location of the file: relative to the catalogue root when the file
        lives beneath it, absolute otherwise.

    """

    organization: str
    repository: str
    date: dt.date
    filename: str
    locator: str

    def identifier(self) -> dict[str, typ.Any]:
        """Return the JSON-friendly identity used in history listings."""
        return {
            "organization": self.organization,
            "repository": self.repository,
            "date": self.date.isoformat(),
            "filename": self.filename,
        }


class RepositoryOverview(msgspec.Struct, kw_only=True, frozen=True):
    """Per-repository summary of available reports.

    Attributes
    ----------
    organization : str
        Organization name.
    repository : str
        Repository name.
    latest_date : datetime.date
        Most recent report date.
    latest_filename : str
        Filename of the most recent report.
    available_dates : tuple[datetime.date, ...]
        Every report date, newest first.

    """

    organization: str
    repository: str
    latest_date: dt.date
    latest_filename: str
    available_dates: tuple[dt.date, ...] = ()
