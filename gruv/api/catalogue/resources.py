"""Read-only catalogue resources.

Routes
------
- ``GET /repos``: every repository with its available dates.
- ``GET /repos/{organization}/{repository}/latest``: newest report.
- ``GET /repos/{organization}/{repository}/history``: every report identity.
- ``GET /repos/{organization}/{repository}/{date}``: report for one day.

Lookup misses surface as ``SummaryNotFoundError`` and malformed dates as
``InvalidSummaryDateError``; the app's error handlers turn them into 404 and
400 responses.

"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gruv.catalogue import SummaryCatalogue, SummaryEntry

__all__ = [
    "DatedSummaryResource",
    "HistoryResource",
    "LatestSummaryResource",
    "RepositoryListResource",
    "serialize_summary",
]


async def serialize_summary(
    catalogue: SummaryCatalogue, entry: SummaryEntry
) -> dict[str, typ.Any]:
    """Serialize *entry* with its Markdown source and rendered HTML.

    The file is read once; both renderings come from the same text.
    """
    markdown = await catalogue.markdown_for(entry)
    return {
        "repository": {
            "organization": entry.organization,
            "name": entry.repository,
        },
        "summary": {
            "date": entry.date.isoformat(),
            "filename": entry.filename,
            "markdown": markdown,
            "html": catalogue.render_html(markdown),
        },
    }


class _CatalogueResource:
    def __init__(self, catalogue: SummaryCatalogue) -> None:
        self._catalogue = catalogue


class RepositoryListResource(_CatalogueResource):
    """``GET /repos``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """List every repository, ordered by organization then name."""
        overviews = await self._catalogue.list_repositories()
        resp.media = {"repositories": msgspec.to_builtins(overviews)}
        resp.status = falcon.HTTP_200


class LatestSummaryResource(_CatalogueResource):
    """``GET /repos/{organization}/{repository}/latest``."""

    async def on_get(
        self,
        _req: Request,
        resp: Response,
        *,
        organization: str,
        repository: str,
    ) -> None:
        """Return the newest report for the repository."""
        entry = await self._catalogue.latest(organization, repository)
        resp.media = await serialize_summary(self._catalogue, entry)
        resp.status = falcon.HTTP_200


class HistoryResource(_CatalogueResource):
    """``GET /repos/{organization}/{repository}/history``."""

    async def on_get(
        self,
        _req: Request,
        resp: Response,
        *,
        organization: str,
        repository: str,
    ) -> None:
        """Return every report identity for the repository, newest first.

        The repository block uses the spelling stored in the catalogue, not
        the spelling in the request path.
        """
        entries = await self._catalogue.history(organization, repository)
        resp.media = {
            "repository": {
                "organization": entries[0].organization,
                "name": entries[0].repository,
            },
            "history": [entry.identifier() for entry in entries],
        }
        resp.status = falcon.HTTP_200


class DatedSummaryResource(_CatalogueResource):
    """``GET /repos/{organization}/{repository}/{date}``."""

    async def on_get(
        self,
        _req: Request,
        resp: Response,
        *,
        organization: str,
        repository: str,
        date: str,
    ) -> None:
        """Return the report for one ``YYYY-MM-DD`` day."""
        entry = await self._catalogue.entry_for(organization, repository, date)
        resp.media = await serialize_summary(self._catalogue, entry)
        resp.status = falcon.HTTP_200
