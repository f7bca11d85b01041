"""Configuration for the summary catalogue.

Usage
-----
>>> import os
>>> os.environ["GRUV_UPDATES_ROOT"] = "/srv/updates"
>>> CatalogueConfig.from_env().database_url
'sqlite+aiosqlite:////srv/updates/gruv.db'

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

DEFAULT_DATABASE_FILENAME = "gruv.db"


def default_database_url(root: Path) -> str:
    """Return the SQLite URL used when ``GRUV_DATABASE_URL`` is unset."""
    return f"sqlite+aiosqlite:///{root / DEFAULT_DATABASE_FILENAME}"


@dc.dataclass(frozen=True, slots=True)
class CatalogueConfig:
    """Where reports live and where their index is stored.

    Attributes
    ----------
    root
        Directory holding ``<organization>_<repository>_<date>.md`` reports.
        Scanned once to seed an empty index.
    database_url
        Async SQLAlchemy URL of the index database.

    """

    root: Path
    database_url: str

    @classmethod
    def from_env(cls) -> CatalogueConfig:
        """Create configuration from environment variables.

        - ``GRUV_UPDATES_ROOT``: report directory (default: working directory).
        - ``GRUV_DATABASE_URL``: index database URL (default: SQLite file
          ``gruv.db`` inside the report directory).
        """
        raw_root = os.environ.get("GRUV_UPDATES_ROOT", "").strip()
        root = Path(raw_root).expanduser() if raw_root else Path.cwd()
        root = root.resolve()

        database_url = os.environ.get("GRUV_DATABASE_URL", "").strip()
        return cls(root=root, database_url=database_url or default_database_url(root))
