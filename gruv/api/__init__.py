"""gruv HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application serving the summary catalogue and the update queue.

Usage
-----
Create and run the application::

    from gruv.api import create_app

    app = create_app()              # probe-only mode
    app = create_app(dependencies)  # catalogue and update endpoints
"""

from gruv.api.app import AppDependencies, create_app
from gruv.api.config import ApiConfig

__all__ = ["ApiConfig", "AppDependencies", "create_app"]
