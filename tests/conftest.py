# tests\conftest.py
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from symbols_awakening.adapters.persistence.memory_repo import InMemorySymbolRepository
from symbols_awakening.adapters.persistence.sqlalchemy_repo import SqlAlchemySymbolRepository
from symbols_awakening.core.domain.models import HealthStatus, Result, SymbolCreate
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository
from symbols_awakening.shared.config import Settings
from symbols_awakening.shared.container import build_container

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def memory_repo():
    """A connected in-memory backend holding the seed dataset."""
    repo = InMemorySymbolRepository()
    await repo.connect()
    yield repo
    await repo.disconnect()


@pytest_asyncio.fixture(scope="function")
async def sqlite_repo():
    """A connected relational backend on in-memory SQLite, schema + seed applied."""
    repo = SqlAlchemySymbolRepository(SQLITE_MEMORY_URL)
    await repo.connect()
    await repo.initialize_schema(include_sample_data=True)
    yield repo
    await repo.disconnect()


@pytest_asyncio.fixture(scope="function", params=["memory", "sqlite"])
async def repo(request):
    """
    Both backends behind the same port, seeded with the same data.
    Tests using this fixture run once per backend.
    """
    if request.param == "memory":
        repository = InMemorySymbolRepository()
        await repository.connect()
    else:
        repository = SqlAlchemySymbolRepository(SQLITE_MEMORY_URL)
        await repository.connect()
        await repository.initialize_schema(include_sample_data=True)
    yield repository
    await repository.disconnect()


@pytest.fixture(scope="function")
def empty_memory_repo():
    return InMemorySymbolRepository(seed=False)


@pytest.fixture(scope="function")
def demo_settings():
    return Settings(DEMO_MODE=True, APP_ENV="testing", _env_file=None)


@pytest.fixture(scope="function")
def container(demo_settings):
    """
    Sets up the Dependency Injection Container for testing with the
    in-memory backend. Overrides are reset after the test.
    """
    container = build_container(demo_settings)
    yield container
    container.unwire()
    container.reset_singletons()


@pytest.fixture(scope="function")
def mock_repo():
    """Returns a mock repository whose lifecycle calls succeed."""
    repo = MagicMock(spec=ISymbolRepository)
    repo.connect = AsyncMock(return_value=Result.ok())
    repo.disconnect = AsyncMock(return_value=Result.ok())
    repo.health_check = AsyncMock(return_value=Result.ok(HealthStatus()))
    return repo


@pytest.fixture
def river():
    """Provides a valid symbol payload for create tests."""
    return SymbolCreate(
        id="river",
        name="River",
        category="flow",
        description="A body of flowing water, the passage of time.",
        interpretations={},
        related_symbols=[],
        properties={},
    )
