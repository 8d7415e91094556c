# symbols_awakening\core\ports\symbol_repository.py
from typing import List, Optional, Protocol

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
)


class ISymbolRepository(Protocol):
    """
    Port for accessing the symbol ontology.
    Implementations: SqlAlchemySymbolRepository (relational) and
    InMemorySymbolRepository (demo / tests).

    Every operation returns a `Result` envelope; backend exceptions never
    escape an implementation.
    """

    # --- Lifecycle ---

    async def connect(self) -> Result[None]:
        """Opens the backend. Calling it twice is harmless."""
        ...

    async def disconnect(self) -> Result[None]:
        """Releases the backend. A no-op success if never connected."""
        ...

    async def initialize_schema(self, include_sample_data: bool = False) -> Result[None]:
        """
        Creates tables and indexes.

        Args:
            include_sample_data: When True, inserts the seed symbols and sets
                that are not already present.
        """
        ...

    async def health_check(self) -> Result[HealthStatus]:
        ...

    # --- Symbols (read) ---

    async def get_symbols(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[Symbol]]:
        """Returns one page of symbols ordered by name."""
        ...

    async def get_symbol(self, symbol_id: str) -> Result[Optional[Symbol]]:
        """
        Retrieves a single symbol.

        Returns:
            A successful Result whose data is None when the id is unknown.
        """
        ...

    async def search_symbols(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        """
        Case-insensitive substring search over name, description and category.
        Name hits rank first, then category hits, then description-only hits;
        ties are ordered by name.
        """
        ...

    async def filter_by_category(
        self, category: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[Symbol]]:
        """Case-insensitive exact category match. Unknown categories yield []."""
        ...

    async def get_categories(self) -> Result[List[str]]:
        """Distinct non-null categories, ascending."""
        ...

    # --- Symbol Sets (read) ---

    async def get_symbol_sets(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Result[List[SymbolSet]]:
        ...

    async def get_symbol_set(self, set_id: str) -> Result[Optional[SymbolSet]]:
        ...

    async def search_symbol_sets(
        self, query: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> Result[List[SymbolSet]]:
        ...

    # --- Symbols (write) ---

    async def create_symbol(self, data: SymbolCreate) -> Result[Symbol]:
        """Fails with AlreadyExists on id collision, leaving the stored record untouched."""
        ...

    async def update_symbol(self, symbol_id: str, changes: SymbolUpdate) -> Result[Symbol]:
        """Merges only the supplied fields and refreshes `updated_at`."""
        ...

    async def delete_symbol(self, symbol_id: str, cascade: bool = False) -> Result[None]:
        """
        Removes a symbol.

        Args:
            cascade: When True, the id is also stripped from the
                `related_symbols` of every other symbol.
        """
        ...

    # --- Symbol Sets (write) ---

    async def create_symbol_set(self, data: SymbolSetCreate) -> Result[SymbolSet]:
        ...

    async def update_symbol_set(self, set_id: str, changes: SymbolSetUpdate) -> Result[SymbolSet]:
        ...

    async def delete_symbol_set(self, set_id: str) -> Result[None]:
        ...
