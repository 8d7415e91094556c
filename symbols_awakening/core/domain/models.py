# symbols_awakening\core\domain\models.py
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import ErrorKind, InvalidInputError

# --- Constants ---

SYMBOL_ID_PATTERN = r"^[A-Za-z0-9_-]+$"
DEFAULT_LIMIT = 50
MAX_PAGE_SIZE = 100  # Enforced by the adapters, not by the backends


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_page(limit: int, offset: int) -> None:
    """Rejects paging arguments no backend can honour."""
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise InvalidInputError(f"limit must be a positive integer, got {limit!r}")
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        raise InvalidInputError(f"offset must be a non-negative integer, got {offset!r}")


def require_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(f"{label} cannot be empty")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _reject_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

# --- Symbols ---

class SymbolFields(BaseModel):
    """Mutable attributes shared by create / update / read."""
    name: str = Field(..., min_length=1, max_length=255, description="Human-readable name")
    category: Optional[str] = Field(None, max_length=100, description="Category classification")
    description: str = Field(..., min_length=1, max_length=2000, description="Meaning of the symbol")

    # Context label -> interpretation (plain text or a structured value)
    interpretations: Dict[str, Any] = Field(default_factory=dict)

    # Insertion order is kept; ids are not checked for existence on write
    related_symbols: List[str] = Field(default_factory=list)

    properties: Dict[str, Any] = Field(default_factory=dict)

    blank_category_to_none = field_validator("category", mode="before")(_blank_to_none)
    reject_blank_text = field_validator("name", "description")(_reject_blank)


class SymbolCreate(SymbolFields):
    """Payload accepted by `create_symbol`. Timestamps are server-assigned."""
    id: str = Field(..., min_length=1, max_length=255, pattern=SYMBOL_ID_PATTERN)


class Symbol(SymbolCreate):
    """A named concept in the ontology, as persisted."""
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: datetime

    timestamps_as_utc = field_validator("created_at", "updated_at")(_as_utc)


class SymbolUpdate(BaseModel):
    """
    Partial update. Only the fields explicitly supplied are merged onto the
    stored record; `id` and timestamps can never be patched.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    interpretations: Optional[Dict[str, Any]] = None
    related_symbols: Optional[List[str]] = None
    properties: Optional[Dict[str, Any]] = None

    blank_category_to_none = field_validator("category", mode="before")(_blank_to_none)
    reject_blank_text = field_validator("name", "description")(_reject_blank)

    @model_validator(mode="after")
    def _only_category_is_nullable(self) -> "SymbolUpdate":
        for key in self.model_fields_set:
            if key != "category" and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

# --- Symbol Sets ---

class SymbolWeight(BaseModel):
    weight: float = Field(1.0, ge=0.0, le=1.0)


def _normalize_members(value: Any) -> Any:
    """Accepts the plain id-list form and bare numeric weights."""
    if isinstance(value, (list, tuple)):
        return {str(symbol_id): {"weight": 1.0} for symbol_id in value}
    if isinstance(value, dict):
        return {
            key: {"weight": member} if isinstance(member, (int, float)) and not isinstance(member, bool) else member
            for key, member in value.items()
        }
    return value


class SymbolSetFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    symbols: Dict[str, SymbolWeight] = Field(
        default_factory=dict,
        description="Map of symbol ids to their weight in this set",
    )

    blank_category_to_none = field_validator("category", mode="before")(_blank_to_none)
    reject_blank_text = field_validator("name", "description")(_reject_blank)
    normalize_members = field_validator("symbols", mode="before")(_normalize_members)


class SymbolSetCreate(SymbolSetFields):
    id: str = Field(..., min_length=1, max_length=255, pattern=SYMBOL_ID_PATTERN)


class SymbolSet(SymbolSetCreate):
    """A named, weighted collection of symbol references."""
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: datetime

    timestamps_as_utc = field_validator("created_at", "updated_at")(_as_utc)


class SymbolSetUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    symbols: Optional[Dict[str, SymbolWeight]] = None

    blank_category_to_none = field_validator("category", mode="before")(_blank_to_none)
    reject_blank_text = field_validator("name", "description")(_reject_blank)
    normalize_members = field_validator("symbols", mode="before")(_normalize_members)

    @model_validator(mode="after")
    def _only_category_is_nullable(self) -> "SymbolSetUpdate":
        for key in self.model_fields_set:
            if key != "category" and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        if "symbols" in data:
            # Keep the stored JSON shape: {id: {"weight": w}}
            data["symbols"] = {k: {"weight": v["weight"]} for k, v in data["symbols"].items()}
        return data

# --- Health ---

class HealthStatus(BaseModel):
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=utcnow)

# --- Result Envelope ---

T = TypeVar("T")


class ResultError(BaseModel):
    kind: ErrorKind
    message: str


class Result(BaseModel, Generic[T]):
    """
    Uniform outcome of every data-access operation.

    Exactly one of `data` (on success) or `error` (on failure) is meaningful;
    a successful result may still carry `data=None` (e.g. a lookup miss).
    """
    success: bool
    data: Optional[T] = None
    error: Optional[ResultError] = None

    @model_validator(mode="after")
    def _never_both(self) -> "Result":
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success and (self.error is None or self.data is not None):
            raise ValueError("a failed result carries an error and no data")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(success=False, error=ResultError(kind=kind, message=message))

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None
