"""Configuration for the HTTP API.

Usage
-----
>>> import os
>>> os.environ["GRUV_ALLOWED_ORIGINS"] = "http://localhost:3000, https://ui.test"
>>> ApiConfig.from_env().allowed_origins
('http://localhost:3000', 'https://ui.test')

"""

from __future__ import annotations

import dataclasses as dc
import os

ANY_ORIGIN = "*"


@dc.dataclass(frozen=True, slots=True)
class ApiConfig:
    """Cross-origin settings for browser clients.

    Attributes
    ----------
    allowed_origins
        Origins allowed to call the API from a browser. ``("*",)`` allows
        every origin.

    """

    allowed_origins: tuple[str, ...] = (ANY_ORIGIN,)

    @property
    def cors_origins(self) -> str | list[str]:
        """Return the value ``falcon.CORSMiddleware`` expects."""
        if ANY_ORIGIN in self.allowed_origins:
            return ANY_ORIGIN
        return list(self.allowed_origins)

    @classmethod
    def from_env(cls) -> ApiConfig:
        """Create configuration from environment variables.

        - ``GRUV_ALLOWED_ORIGINS``: comma-separated origins (default ``*``).
        """
        raw = os.environ.get("GRUV_ALLOWED_ORIGINS", "")
        origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
        return cls(allowed_origins=origins or (ANY_ORIGIN,))
