"""gruv runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`gruv.api.app.create_app` while keeping the
``gruv.runtime:create_app`` entrypoint stable.

Configuration is driven by environment variables:

- ``GRUV_HOST``: Bind address (default ``0.0.0.0``)
- ``GRUV_PORT``: Listen port (default ``9292``)
- ``GRUV_LOG_LEVEL``: Log level (default ``INFO``)
- ``GRUV_UPDATES_ROOT``, ``GRUV_DATABASE_URL``: catalogue location
- ``GRUV_GENERATOR_COMMAND``, ``GRUV_GENERATOR_WORKDIR``,
  ``GRUV_GENERATOR_TIMEOUT_SECONDS``: external report generator
- ``GRUV_ALLOWED_ORIGINS``: comma-separated browser origins (default ``*``)

Run the service with the ``gruv`` console script or
``python -m gruv.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from gruv.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["DEFAULT_PORT", "create_app", "main"]

logger = get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
DEFAULT_PORT = 9292

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid GRUV_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application with every endpoint enabled.

    Returns
    -------
    falcon.asgi.App
        Application whose lifespan starts and stops the update queue.

    """
    from gruv.api.app import create_app as _create_api_app
    from gruv.api.config import ApiConfig
    from gruv.api.factory import build_dependencies

    return _create_api_app(build_dependencies(), config=ApiConfig.from_env())


def main() -> None:
    """Start the gruv server using Granian.

    Reads ``GRUV_HOST``, ``GRUV_PORT`` and ``GRUV_LOG_LEVEL`` from the
    environment and starts the ASGI server with a single worker process, so
    one update queue serializes every generation request.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("GRUV_HOST", DEFAULT_HOST)
    port = _parse_port(os.environ.get("GRUV_PORT", str(DEFAULT_PORT)))
    log_level_str = os.environ.get("GRUV_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GRUV_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting gruv on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "gruv.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


if __name__ == "__main__":
    main()
