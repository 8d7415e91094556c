# symbols_awakening\adapters\persistence\seed.py
"""
Fixed sample dataset (6 symbols, 4 weighted symbol sets).

Shared by the in-memory backend and by
`initialize_schema(include_sample_data=True)` on the relational backend.
"""
import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List

from symbols_awakening.core.domain.models import SymbolCreate, SymbolSetCreate

SEED_PACKAGE = "symbols_awakening.data"
SEED_RESOURCE = "seed_symbols.json"


@lru_cache(maxsize=1)
def _load_raw() -> Dict[str, Any]:
    text = resources.files(SEED_PACKAGE).joinpath(SEED_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


def seed_symbols() -> List[SymbolCreate]:
    return [SymbolCreate.model_validate(item) for item in _load_raw()["symbols"]]


def seed_symbol_sets() -> List[SymbolSetCreate]:
    return [SymbolSetCreate.model_validate(item) for item in _load_raw()["symbol_sets"]]
