"""Dependency injection container for the cache store."""

from dependency_injector import containers, providers

from tablecache.core.config import CacheSettings
from tablecache.core.database import Database
from tablecache.core.cache import CacheStore


class Container(containers.DeclarativeContainer):
    """Cache dependency injection container."""

    # Settings
    settings = providers.Singleton(
        CacheSettings,
    )

    # Database (shared so several stores can use one engine)
    database = providers.Singleton(
        Database,
        settings=settings
    )

    # Cache store
    cache = providers.Singleton(
        CacheStore,
        settings=settings,
        database=database
    )


async def shutdown_container(container: Container) -> None:
    """Stop the store and dispose the shared database."""
    await container.cache().shutdown()
    await container.database().shutdown()


# Global container instance
container = Container()
