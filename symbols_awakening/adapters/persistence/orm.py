# symbols_awakening/adapters/persistence/orm.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, func, literal_column
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from symbols_awakening.core.domain.models import utcnow

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

Base = declarative_base()

# Plain JSON everywhere, JSONB on PostgreSQL.
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


class SymbolRow(Base):
    """
    Storage shape of a Symbol.

    `interpretations` and `properties` are free-form JSON objects;
    `related_symbols` is a JSON array of ids (not a foreign key).
    """

    __tablename__ = "symbols"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    interpretations: Mapped[Dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)
    related_symbols: Mapped[List[str]] = mapped_column(JsonDocument, nullable=False, default=list)
    properties: Mapped[Dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<SymbolRow id={self.id!r} category={self.category!r}>"


# ---------------------------------------------------------------------------
# Symbol Sets
# ---------------------------------------------------------------------------


class SymbolSetRow(Base):
    """Storage shape of a SymbolSet. `symbols` maps symbol id -> {"weight": float}."""

    __tablename__ = "symbol_sets"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    symbols: Mapped[Dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<SymbolSetRow id={self.id!r} members={len(self.symbols or {})}>"


# ---------------------------------------------------------------------------
# Full-text indexes (PostgreSQL only)
# ---------------------------------------------------------------------------


def _fulltext_document(row: Any):
    return func.to_tsvector(
        literal_column("'english'"),
        row.name
        + literal_column("' '")
        + func.coalesce(row.description, literal_column("''"))
        + literal_column("' '")
        + func.coalesce(row.category, literal_column("''")),
    )


Index(
    "ix_symbols_fulltext",
    _fulltext_document(SymbolRow),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")

Index(
    "ix_symbol_sets_fulltext",
    _fulltext_document(SymbolSetRow),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
