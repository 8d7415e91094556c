# symbols_awakening\adapters\persistence\memory_repo.py
from typing import Iterable, List, Optional, TypeVar, Union

import structlog

from symbols_awakening.core.domain.exceptions import (
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
from .base import ConnectionMixin, guarded
from .seed import seed_symbol_sets, seed_symbols

logger = structlog.get_logger()

Entry = TypeVar("Entry", Symbol, SymbolSet)


def _by_name(item: Union[Symbol, SymbolSet]):
    return (item.name, item.id)


def _search_rank(item: Union[Symbol, SymbolSet], needle: str) -> Optional[int]:
    """1 = name hit, 2 = category hit, 3 = description-only hit, None = miss."""
    if needle in item.name.lower():
        return 1
    if item.category and needle in item.category.lower():
        return 2
    if needle in item.description.lower():
        return 3
    return None


def _page(items: Iterable[Entry], limit: int, offset: int) -> List[Entry]:
    return [item.model_copy(deep=True) for item in list(items)[offset:offset + limit]]


class InMemorySymbolRepository(ConnectionMixin):
    """
    Demo backend that keeps the seed dataset in plain lists.

    Mirrors the ordering, ranking and case rules of the relational backend.
    Values are deep-copied on the way in and out, so callers never share
    state with the store. Not safe for concurrent multi-client use: there
    is no locking around read-modify-write sequences.
    """

    backend_label = "Demo database"

    def __init__(self, seed: bool = True):
        super().__init__()
        self._symbols: List[Symbol] = []
        self._symbol_sets: List[SymbolSet] = []
        if seed:
            self._load_seed()

    def _load_seed(self) -> None:
        now = utcnow()
        self._symbols = [
            Symbol(**item.model_dump(), created_at=now, updated_at=now) for item in seed_symbols()
        ]
        self._symbol_sets = [
            SymbolSet(**item.model_dump(), created_at=now, updated_at=now) for item in seed_symbol_sets()
        ]

    def _find_symbol(self, symbol_id: str) -> Optional[int]:
        return next((i for i, s in enumerate(self._symbols) if s.id == symbol_id), None)

    def _find_symbol_set(self, set_id: str) -> Optional[int]:
        return next((i for i, s in enumerate(self._symbol_sets) if s.id == set_id), None)

    # --- Lifecycle ---

    @guarded
    async def connect(self) -> Result[None]:
        if not self._connected:
            self._connected = True
            logger.info(
                "demo_database_connected",
                symbols=len(self._symbols),
                symbol_sets=len(self._symbol_sets),
            )
        return Result.ok()

    @guarded
    async def disconnect(self) -> Result[None]:
        if self._connected:
            self._connected = False
            logger.info("demo_database_disconnected")
        return Result.ok()

    @guarded
    async def initialize_schema(self, include_sample_data: bool = False) -> Result[None]:
        # Nothing to create; the seed is loaded at construction.
        self._require_connection()
        return Result.ok()

    @guarded
    async def health_check(self) -> Result[HealthStatus]:
        self._require_connection()
        return Result.ok(HealthStatus())

    # --- Symbols (read) ---

    @guarded
    async def get_symbols(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[Symbol]]:
        self._require_connection()
        validate_page(limit, offset)
        return Result.ok(_page(sorted(self._symbols, key=_by_name), limit, offset))

    @guarded
    async def get_symbol(self, symbol_id: str) -> Result[Optional[Symbol]]:
        self._require_connection()
        index = self._find_symbol(symbol_id)
        if index is None:
            return Result.ok(None)
        return Result.ok(self._symbols[index].model_copy(deep=True))

    @guarded
    async def search_symbols(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        self._require_connection()
        needle = require_text(query, "Search query").lower()
        validate_page(limit, offset)
        return Result.ok(_page(self._ranked(self._symbols, needle), limit, offset))

    @guarded
    async def filter_by_category(
        self, category: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        self._require_connection()
        wanted = require_text(category, "Category").lower()
        validate_page(limit, offset)
        matches = [s for s in self._symbols if s.category and s.category.lower() == wanted]
        return Result.ok(_page(sorted(matches, key=_by_name), limit, offset))

    @guarded
    async def get_categories(self) -> Result[List[str]]:
        self._require_connection()
        return Result.ok(sorted({s.category for s in self._symbols if s.category}))

    # --- Symbol Sets (read) ---

    @guarded
    async def get_symbol_sets(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[SymbolSet]]:
        self._require_connection()
        validate_page(limit, offset)
        return Result.ok(_page(sorted(self._symbol_sets, key=_by_name), limit, offset))

    @guarded
    async def get_symbol_set(self, set_id: str) -> Result[Optional[SymbolSet]]:
        self._require_connection()
        index = self._find_symbol_set(set_id)
        if index is None:
            return Result.ok(None)
        return Result.ok(self._symbol_sets[index].model_copy(deep=True))

    @guarded
    async def search_symbol_sets(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[SymbolSet]]:
        self._require_connection()
        needle = require_text(query, "Search query").lower()
        validate_page(limit, offset)
        return Result.ok(_page(self._ranked(self._symbol_sets, needle), limit, offset))

    @staticmethod
    def _ranked(items: Iterable[Entry], needle: str) -> List[Entry]:
        hits = []
        for item in items:
            rank = _search_rank(item, needle)
            if rank is not None:
                hits.append((rank, item.name, item.id, item))
        hits.sort(key=lambda hit: hit[:3])
        return [hit[3] for hit in hits]

    # --- Symbols (write) ---

    @guarded
    async def create_symbol(self, data: SymbolCreate) -> Result[Symbol]:
        self._require_connection()
        if self._find_symbol(data.id) is not None:
            raise SymbolAlreadyExistsError(data.id)

        now = utcnow()
        symbol = Symbol(**data.model_dump(), created_at=now, updated_at=now)
        self._symbols.append(symbol)
        logger.info("symbol_created", symbol_id=symbol.id, backend="memory")
        return Result.ok(symbol.model_copy(deep=True))

    @guarded
    async def update_symbol(self, symbol_id: str, changes: SymbolUpdate) -> Result[Symbol]:
        self._require_connection()
        index = self._find_symbol(symbol_id)
        if index is None:
            raise SymbolNotFoundError(symbol_id)

        merged = {**self._symbols[index].model_dump(), **changes.changes(), "updated_at": utcnow()}
        self._symbols[index] = Symbol.model_validate(merged)
        logger.info("symbol_updated", symbol_id=symbol_id, fields=sorted(changes.model_fields_set))
        return Result.ok(self._symbols[index].model_copy(deep=True))

    @guarded
    async def delete_symbol(self, symbol_id: str, cascade: bool = False) -> Result[None]:
        self._require_connection()
        index = self._find_symbol(symbol_id)
        if index is None:
            raise SymbolNotFoundError(symbol_id)

        del self._symbols[index]
        touched = 0
        if cascade:
            now = utcnow()
            for i, other in enumerate(self._symbols):
                if symbol_id in other.related_symbols:
                    self._symbols[i] = other.model_copy(update={
                        "related_symbols": [r for r in other.related_symbols if r != symbol_id],
                        "updated_at": now,
                    })
                    touched += 1
        logger.info("symbol_deleted", symbol_id=symbol_id, cascade=cascade, references_removed=touched)
        return Result.ok()

    # --- Symbol Sets (write) ---

    @guarded
    async def create_symbol_set(self, data: SymbolSetCreate) -> Result[SymbolSet]:
        self._require_connection()
        if self._find_symbol_set(data.id) is not None:
            raise SymbolSetAlreadyExistsError(data.id)

        now = utcnow()
        symbol_set = SymbolSet(**data.model_dump(), created_at=now, updated_at=now)
        self._symbol_sets.append(symbol_set)
        logger.info("symbol_set_created", set_id=symbol_set.id, backend="memory")
        return Result.ok(symbol_set.model_copy(deep=True))

    @guarded
    async def update_symbol_set(self, set_id: str, changes: SymbolSetUpdate) -> Result[SymbolSet]:
        self._require_connection()
        index = self._find_symbol_set(set_id)
        if index is None:
            raise SymbolSetNotFoundError(set_id)

        merged = {**self._symbol_sets[index].model_dump(), **changes.changes(), "updated_at": utcnow()}
        self._symbol_sets[index] = SymbolSet.model_validate(merged)
        logger.info("symbol_set_updated", set_id=set_id, fields=sorted(changes.model_fields_set))
        return Result.ok(self._symbol_sets[index].model_copy(deep=True))

    @guarded
    async def delete_symbol_set(self, set_id: str) -> Result[None]:
        self._require_connection()
        index = self._find_symbol_set(set_id)
        if index is None:
            raise SymbolSetNotFoundError(set_id)

        del self._symbol_sets[index]
        logger.info("symbol_set_deleted", set_id=set_id)
        return Result.ok()
