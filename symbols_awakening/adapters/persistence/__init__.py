# symbols_awakening\adapters\persistence\__init__.py
"""
Persistence Adapters.

This package implements the ISymbolRepository port defined in the Core Domain.
It handles the translation between Domain Entities and the underlying storage
mechanism.

Components:
- SqlAlchemySymbolRepository: relational backend (PostgreSQL via asyncpg, SQLite via aiosqlite).
- InMemorySymbolRepository: demo backend seeded with the sample dataset.
"""

from .memory_repo import InMemorySymbolRepository
from .sqlalchemy_repo import SqlAlchemySymbolRepository

__all__ = [
    "InMemorySymbolRepository",
    "SqlAlchemySymbolRepository",
]
