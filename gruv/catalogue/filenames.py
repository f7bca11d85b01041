r"""Summary filename contract.

Reports are stored as ``<organization>_<repository>_<YYYY-MM-DD>.md``. The
organization is matched non-greedily and the repository greedily, so
underscores belong to the repository name::

    >>> parse_summary_filename("acme_my_widgets_2024-03-16.md")
    SummaryFilename(organization='acme', repository='my_widgets', date=datetime.date(2024, 3, 16))

The split is ambiguous for organizations that themselves contain ``_``
(``big_corp_widgets_...`` parses as ``big`` / ``corp_widgets``); the behaviour
is kept for compatibility with files already on disk.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re

from .errors import InvalidSummaryDateError

FILENAME_PATTERN = re.compile(
    r"\A(?P<organization>.+?)_(?P<repository>.+)_(?P<date>\d{4}-\d{2}-\d{2})\.md\Z"
)
_DATE_PATTERN = re.compile(r"\A\d{4}-\d{2}-\d{2}\Z")


@dc.dataclass(frozen=True, slots=True)
class SummaryFilename:
    """Identity encoded in a summary filename."""

    organization: str
    repository: str
    date: dt.date


def parse_summary_date(raw: str) -> dt.date:
    """Parse a strict ISO calendar date.

    Raises
    ------
    InvalidSummaryDateError
        If *raw* is not ``YYYY-MM-DD`` or names a day that does not exist.

    """
    candidate = raw.strip()
    if not _DATE_PATTERN.match(candidate):
        raise InvalidSummaryDateError(raw)
    try:
        return dt.date.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidSummaryDateError(raw) from exc


def parse_summary_filename(filename: str) -> SummaryFilename | None:
    """Return the identity encoded in *filename*, or ``None`` if it has none.

    Only the basename is expected; callers holding a path should pass
    ``path.name``. Dates that match the shape but not the calendar (for
    example ``2024-02-30``) are treated as non-matching.
    """
    match = FILENAME_PATTERN.match(filename)
    if match is None:
        return None
    try:
        date = parse_summary_date(match["date"])
    except InvalidSummaryDateError:
        return None
    return SummaryFilename(
        organization=match["organization"],
        repository=match["repository"],
        date=date,
    )


def summary_filename(organization: str, repository: str, date: dt.date) -> str:
    """Build the filename for a summary; the inverse of the parser."""
    return f"{organization}_{repository}_{date.isoformat()}.md"
