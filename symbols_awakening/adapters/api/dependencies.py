# symbols_awakening/adapters/api/dependencies.py
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from symbols_awakening.core.ports.symbol_repository import ISymbolRepository
from symbols_awakening.shared.config import Settings
from symbols_awakening.shared.container import Container


@inject
def get_repository(
    repository: ISymbolRepository = Depends(Provide[Container.symbol_repository]),
) -> ISymbolRepository:
    """The single repository instance owned by the application container."""
    return repository


@inject
def get_app_settings(
    settings: Settings = Depends(Provide[Container.settings]),
) -> Settings:
    return settings
