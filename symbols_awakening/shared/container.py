# symbols_awakening\shared\container.py
from typing import Optional

from dependency_injector import containers, providers

from symbols_awakening.adapters.persistence.memory_repo import InMemorySymbolRepository
from symbols_awakening.adapters.persistence.sqlalchemy_repo import SqlAlchemySymbolRepository
from symbols_awakening.services.csv_transfer import CsvTransferService
from symbols_awakening.shared.config import Settings, settings as default_settings


class Container(containers.DeclarativeContainer):
    """
    Dependency Injection Container.

    The application context: built once by the CLI and handed to whichever
    adapter starts. Exactly one repository instance lives per container.
    """

    # 1. Configuration
    config = providers.Configuration()
    settings = providers.Object(default_settings)

    # 2. Gateways (Storage Backends)

    # Singleton: one engine / connection pool per process
    relational_repository = providers.Singleton(
        SqlAlchemySymbolRepository,
        database_url=config.database_url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )

    # Singleton: the demo dataset must survive between requests
    memory_repository = providers.Singleton(InMemorySymbolRepository)

    # The port consumed by every adapter
    symbol_repository = providers.Selector(
        config.backend,
        relational=relational_repository,
        memory=memory_repository,
    )

    # 3. Services

    # Factory: stateless, new instance per use
    csv_transfer_service = providers.Factory(
        CsvTransferService,
        repository=symbol_repository,
    )


def build_container(settings: Optional[Settings] = None) -> Container:
    """Creates a container configured from `settings` (defaults to the environment)."""
    settings = settings or default_settings
    container = Container()
    container.settings.override(providers.Object(settings))
    container.config.from_dict(
        {
            "backend": settings.STORAGE_BACKEND.value,
            "database_url": settings.DATABASE_URL,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "echo": settings.DB_ECHO,
        }
    )
    return container
