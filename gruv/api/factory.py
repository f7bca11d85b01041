"""Build application dependencies from environment configuration.

Usage
-----
Build the full dependency set for the API layer::

    from gruv.api.factory import build_dependencies

    app = create_app(build_dependencies())

"""

from __future__ import annotations

import functools

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from gruv.api.app import AppDependencies
from gruv.catalogue import (
    CatalogueConfig,
    SqlAlchemySummaryStore,
    SummaryCatalogue,
    init_catalogue_storage,
)
from gruv.generation import GeneratorConfig, command_generator_factory
from gruv.updates import QueueEventLogger, RepositoryUpdateQueue

__all__ = ["build_dependencies"]


def build_dependencies(
    catalogue_config: CatalogueConfig | None = None,
    generator_config: GeneratorConfig | None = None,
) -> AppDependencies:
    """Assemble the catalogue, update queue and lifespan hooks.

    Parameters
    ----------
    catalogue_config
        Report directory and index database; read from the environment
        when omitted.
    generator_config
        External generator command; read from the environment when
        omitted, running in the report directory by default.

    Returns
    -------
    AppDependencies
        Dependencies whose startup hook creates the index tables and whose
        shutdown hook disposes the database engine.

    """
    catalogue_config = catalogue_config or CatalogueConfig.from_env()
    generator_config = generator_config or GeneratorConfig.from_env(
        default_working_directory=catalogue_config.root
    )

    engine = create_async_engine(catalogue_config.database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    catalogue = SummaryCatalogue(
        SqlAlchemySummaryStore(session_factory),
        root=catalogue_config.root,
    )
    update_queue = RepositoryUpdateQueue(
        catalogue=catalogue,
        generator_factory=command_generator_factory(generator_config),
        event_logger=QueueEventLogger(),
    )
    return AppDependencies(
        catalogue=catalogue,
        update_queue=update_queue,
        startup_hooks=(functools.partial(init_catalogue_storage, engine),),
        shutdown_hooks=(engine.dispose,),
    )
