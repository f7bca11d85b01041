"""Errors raised by the summary catalogue."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt


class CatalogueError(Exception):
    """Base class for catalogue errors."""


class SummaryNotFoundError(CatalogueError):
    """Raised when no summary matches a lookup.

    Attributes
    ----------
    organization
        Organization that was looked up.
    repository
        Repository that was looked up.
    date
        Requested summary date, when the lookup was for a single day.

    """

    def __init__(
        self,
        organization: str,
        repository: str,
        *,
        date: dt.date | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialise with the lookup key and an optional reason."""
        self.organization = organization
        self.repository = repository
        self.date = date
        if reason is None:
            reason = (
                "Repository not found"
                if date is None
                else f"Summary not found for {date.isoformat()}"
            )
        super().__init__(f"{reason}: {organization}/{repository}")


class InvalidSummaryDateError(CatalogueError, ValueError):
    """Raised when a summary date is not an ISO ``YYYY-MM-DD`` calendar date."""

    def __init__(self, raw: str) -> None:
        """Initialise with the rejected date string."""
        self.raw = raw
        super().__init__(f"Invalid summary date {raw!r}; expected YYYY-MM-DD")
