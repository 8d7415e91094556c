# symbols_awakening\adapters\persistence\sqlalchemy_repo.py
from typing import Any, Dict, List, Optional, Type

import structlog
from sqlalchemy import String, case, cast, event, func, or_, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from symbols_awakening.core.domain.exceptions import (
    BackendFailureError,
    SymbolAlreadyExistsError,
    SymbolNotFoundError,
    SymbolSetAlreadyExistsError,
    SymbolSetNotFoundError,
)
from symbols_awakening.core.domain.models import (
    DEFAULT_LIMIT,
    HealthStatus,
    Result,
    Symbol,
    SymbolCreate,
    SymbolSet,
    SymbolSetCreate,
    SymbolSetUpdate,
    SymbolUpdate,
    require_text,
    utcnow,
    validate_page,
)
from .base import ConnectionMixin, guarded, storage_error_message
from .orm import Base, SymbolRow, SymbolSetRow
from .seed import seed_symbol_sets, seed_symbols

logger = structlog.get_logger()

# Sync driver names mapped to their asyncio counterparts.
ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def async_database_url(database_url: str) -> str:
    """Rewrites `postgresql://` / `sqlite://` URLs to use an asyncio driver."""
    url = make_url(database_url)
    driver = ASYNC_DRIVERS.get(url.drivername)
    if driver:
        url = url.set(drivername=driver)
    return url.render_as_string(hide_password=False)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite's built-in lower() only folds ASCII letters.
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column: Any, needle: str):
    return func.lower(column).like(f"%{_escape_like(needle)}%", escape="\\")


def _ranked_search(model: Type[Any], query: str, limit: int, offset: int):
    """Name hits first, then category, then description-only; ties by name."""
    needle = query.lower()
    name_hit = _contains(model.name, needle)
    category_hit = _contains(model.category, needle)
    description_hit = _contains(model.description, needle)
    rank = case((name_hit, 1), (category_hit, 2), else_=3)
    return (
        select(model)
        .where(or_(name_hit, category_hit, description_hit))
        .order_by(rank, model.name, model.id)
        .limit(limit)
        .offset(offset)
    )


class SqlAlchemySymbolRepository(ConnectionMixin):
    """
    Relational backend built on the SQLAlchemy asyncio ORM.

    Works against PostgreSQL (asyncpg) and SQLite (aiosqlite). Every query
    is built from SQLAlchemy expressions, so user input only ever reaches
    the database as bound parameters.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        super().__init__()
        self.database_url = async_database_url(database_url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    def _build_engine(self) -> AsyncEngine:
        url = make_url(self.database_url)
        options: Dict[str, Any] = {"echo": self.echo}
        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                # A single shared connection keeps the in-memory database alive.
                options["poolclass"] = StaticPool
        else:
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=True,
            )
        engine = create_async_engine(url, **options)
        if url.get_backend_name() == "sqlite":
            event.listen(engine.sync_engine, "connect", _register_sqlite_functions)
        return engine

    # --- Lifecycle ---

    @guarded
    async def connect(self) -> Result[None]:
        if self._connected:
            return Result.ok()

        engine = self._build_engine()
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            message = storage_error_message(e) if isinstance(e, SQLAlchemyError) else str(e)
            logger.error("database_connect_failed", error=message)
            raise BackendFailureError(message) from e

        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
        self._connected = True
        logger.info("database_connected", dialect=engine.dialect.name)
        return Result.ok()

    @guarded
    async def disconnect(self) -> Result[None]:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("database_disconnected")
        self._engine = None
        self._sessions = None
        self._connected = False
        return Result.ok()

    @guarded
    async def initialize_schema(self, include_sample_data: bool = False) -> Result[None]:
        self._require_connection()
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("schema_initialized")

        if include_sample_data:
            await self._insert_missing_seed()
        return Result.ok()

    async def _insert_missing_seed(self) -> None:
        now = utcnow()
        inserted_symbols = inserted_sets = 0
        async with self._sessions.begin() as session:
            for item in seed_symbols():
                if await session.get(SymbolRow, item.id) is None:
                    session.add(SymbolRow(**item.model_dump(), created_at=now, updated_at=now))
                    inserted_symbols += 1
            for item in seed_symbol_sets():
                if await session.get(SymbolSetRow, item.id) is None:
                    session.add(SymbolSetRow(**item.model_dump(), created_at=now, updated_at=now))
                    inserted_sets += 1
        logger.info("sample_data_inserted", symbols=inserted_symbols, symbol_sets=inserted_sets)

    @guarded
    async def health_check(self) -> Result[HealthStatus]:
        self._require_connection()
        async with self._sessions() as session:
            await session.execute(text("SELECT 1"))
        return Result.ok(HealthStatus())

    # --- Symbols (read) ---

    @guarded
    async def get_symbols(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[Symbol]]:
        self._require_connection()
        validate_page(limit, offset)
        stmt = select(SymbolRow).order_by(SymbolRow.name, SymbolRow.id).limit(limit).offset(offset)
        return Result.ok(await self._fetch_symbols(stmt))

    @guarded
    async def get_symbol(self, symbol_id: str) -> Result[Optional[Symbol]]:
        self._require_connection()
        async with self._sessions() as session:
            row = await session.get(SymbolRow, symbol_id)
            return Result.ok(Symbol.model_validate(row) if row is not None else None)

    @guarded
    async def search_symbols(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        self._require_connection()
        require_text(query, "Search query")
        validate_page(limit, offset)
        return Result.ok(await self._fetch_symbols(_ranked_search(SymbolRow, query, limit, offset)))

    @guarded
    async def filter_by_category(
        self, category: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        self._require_connection()
        require_text(category, "Category")
        validate_page(limit, offset)
        stmt = (
            select(SymbolRow)
            .where(func.lower(SymbolRow.category) == category.lower())
            .order_by(SymbolRow.name, SymbolRow.id)
            .limit(limit)
            .offset(offset)
        )
        return Result.ok(await self._fetch_symbols(stmt))

    @guarded
    async def get_categories(self) -> Result[List[str]]:
        self._require_connection()
        stmt = (
            select(SymbolRow.category)
            .where(SymbolRow.category.is_not(None))
            .distinct()
            .order_by(SymbolRow.category)
        )
        async with self._sessions() as session:
            result = await session.execute(stmt)
            return Result.ok([category for category in result.scalars() if category])

    async def _fetch_symbols(self, stmt) -> List[Symbol]:
        async with self._sessions() as session:
            result = await session.execute(stmt)
            return [Symbol.model_validate(row) for row in result.scalars()]

    # --- Symbol Sets (read) ---

    @guarded
    async def get_symbol_sets(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[SymbolSet]]:
        self._require_connection()
        validate_page(limit, offset)
        stmt = select(SymbolSetRow).order_by(SymbolSetRow.name, SymbolSetRow.id).limit(limit).offset(offset)
        return Result.ok(await self._fetch_symbol_sets(stmt))

    @guarded
    async def get_symbol_set(self, set_id: str) -> Result[Optional[SymbolSet]]:
        self._require_connection()
        async with self._sessions() as session:
            row = await session.get(SymbolSetRow, set_id)
            return Result.ok(SymbolSet.model_validate(row) if row is not None else None)

    @guarded
    async def search_symbol_sets(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[SymbolSet]]:
        self._require_connection()
        require_text(query, "Search query")
        validate_page(limit, offset)
        return Result.ok(await self._fetch_symbol_sets(_ranked_search(SymbolSetRow, query, limit, offset)))

    async def _fetch_symbol_sets(self, stmt) -> List[SymbolSet]:
        async with self._sessions() as session:
            result = await session.execute(stmt)
            return [SymbolSet.model_validate(row) for row in result.scalars()]

    # --- Symbols (write) ---

    @guarded
    async def create_symbol(self, data: SymbolCreate) -> Result[Symbol]:
        self._require_connection()
        now = utcnow()
        row = SymbolRow(**data.model_dump(), created_at=now, updated_at=now)
        try:
            async with self._sessions.begin() as session:
                if await session.get(SymbolRow, data.id) is not None:
                    raise SymbolAlreadyExistsError(data.id)
                session.add(row)
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same id.
            raise SymbolAlreadyExistsError(data.id) from e

        logger.info("symbol_created", symbol_id=data.id)
        return Result.ok(Symbol.model_validate(row))

    @guarded
    async def update_symbol(self, symbol_id: str, changes: SymbolUpdate) -> Result[Symbol]:
        self._require_connection()
        async with self._sessions.begin() as session:
            row = await session.get(SymbolRow, symbol_id)
            if row is None:
                raise SymbolNotFoundError(symbol_id)
            for field, value in changes.changes().items():
                setattr(row, field, value)
            row.updated_at = utcnow()

        logger.info("symbol_updated", symbol_id=symbol_id, fields=sorted(changes.model_fields_set))
        return Result.ok(Symbol.model_validate(row))

    @guarded
    async def delete_symbol(self, symbol_id: str, cascade: bool = False) -> Result[None]:
        """
        Removes a symbol; with `cascade`, also strips its id from every other
        symbol's `related_symbols`. Both steps share one transaction.
        """
        self._require_connection()
        touched = 0
        async with self._sessions.begin() as session:
            row = await session.get(SymbolRow, symbol_id)
            if row is None:
                raise SymbolNotFoundError(symbol_id)

            if cascade:
                touched = await self._strip_references(session, symbol_id)
            await session.delete(row)

        logger.info("symbol_deleted", symbol_id=symbol_id, cascade=cascade, references_removed=touched)
        return Result.ok()

    @staticmethod
    async def _strip_references(session: AsyncSession, symbol_id: str) -> int:
        # The serialized JSON array contains the quoted id; narrow with LIKE, confirm in Python.
        pattern = f'%"{_escape_like(symbol_id)}"%'
        stmt = select(SymbolRow).where(
            SymbolRow.id != symbol_id,
            cast(SymbolRow.related_symbols, String).like(pattern, escape="\\"),
        )
        result = await session.execute(stmt)

        now = utcnow()
        touched = 0
        for other in result.scalars():
            related = list(other.related_symbols or [])
            if symbol_id not in related:
                continue
            other.related_symbols = [r for r in related if r != symbol_id]
            other.updated_at = now
            touched += 1
        return touched

    # --- Symbol Sets (write) ---

    @guarded
    async def create_symbol_set(self, data: SymbolSetCreate) -> Result[SymbolSet]:
        self._require_connection()
        now = utcnow()
        row = SymbolSetRow(**data.model_dump(), created_at=now, updated_at=now)
        try:
            async with self._sessions.begin() as session:
                if await session.get(SymbolSetRow, data.id) is not None:
                    raise SymbolSetAlreadyExistsError(data.id)
                session.add(row)
        except IntegrityError as e:
            raise SymbolSetAlreadyExistsError(data.id) from e

        logger.info("symbol_set_created", set_id=data.id)
        return Result.ok(SymbolSet.model_validate(row))

    @guarded
    async def update_symbol_set(self, set_id: str, changes: SymbolSetUpdate) -> Result[SymbolSet]:
        self._require_connection()
        async with self._sessions.begin() as session:
            row = await session.get(SymbolSetRow, set_id)
            if row is None:
                raise SymbolSetNotFoundError(set_id)
            for field, value in changes.changes().items():
                setattr(row, field, value)
            row.updated_at = utcnow()

        logger.info("symbol_set_updated", set_id=set_id, fields=sorted(changes.model_fields_set))
        return Result.ok(SymbolSet.model_validate(row))

    @guarded
    async def delete_symbol_set(self, set_id: str) -> Result[None]:
        self._require_connection()
        async with self._sessions.begin() as session:
            row = await session.get(SymbolSetRow, set_id)
            if row is None:
                raise SymbolSetNotFoundError(set_id)
            await session.delete(row)

        logger.info("symbol_set_deleted", set_id=set_id)
        return Result.ok()
