# symbols_awakening/adapters/mcp/tools.py
"""
MCP tool catalogue.

Each tool is described by a pydantic argument model (its JSON input schema is
generated from it) and a handler that calls the repository port and turns
the `Result` envelope into a JSON-serializable payload.

`SymbolsToolService` has no dependency on the MCP transport, so every tool,
resource and prompt can be exercised directly from tests.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from symbols_awakening import __version__
from symbols_awakening.core.domain.exceptions import ErrorKind
from symbols_awakening.core.domain.models import (
    DEFAULT_LIMIT,
    MAX_PAGE_SIZE,
    Result,
    SymbolCreate,
    SymbolSetCreate,
    SymbolSetUpdate,
    SymbolUpdate,
)
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository

logger = structlog.get_logger()

SERVER_NAME = "symbols-awakening"

CATEGORIES_URI = "symbols://categories"
CATEGORY_URI_TEMPLATE = "symbols://category/{category}"
CATEGORY_RESOURCE_LIMIT = 20

_CATEGORY_URI = re.compile(r"^symbols://category/(?P<category>.+)$")


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class NoArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PageArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of results")
    offset: int = Field(0, ge=0, description="Number of results to skip")


class SymbolIdArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Symbol ID")


class SearchArgs(PageArgs):
    query: str = Field(..., description="Text matched against name, category and description")


class CategoryArgs(PageArgs):
    category: str = Field(..., description="Category name (case-insensitive)")


class DeleteSymbolArgs(SymbolIdArgs):
    cascade: bool = Field(False, description="Also remove the id from other symbols' related_symbols")


class UpdateSymbolArgs(SymbolUpdate):
    id: str = Field(..., description="ID of the symbol to update")


class UpdateSymbolSetArgs(SymbolSetUpdate):
    id: str = Field(..., description="ID of the symbol set to update")


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: Type[BaseModel]

    def input_schema(self) -> Dict[str, Any]:
        return self.arguments.model_json_schema()


TOOL_SPECS: List[ToolSpec] = [
    ToolSpec("get_symbols", "List symbols from the ontology, ordered by name", PageArgs),
    ToolSpec("get_symbol", "Get a symbol by ID", SymbolIdArgs),
    ToolSpec("search_symbols", "Search symbols by name, category or description", SearchArgs),
    ToolSpec("filter_by_category", "List the symbols of one category", CategoryArgs),
    ToolSpec("get_categories", "List all distinct symbol categories", NoArgs),
    ToolSpec("get_symbol_sets", "List symbol sets, ordered by name", PageArgs),
    ToolSpec("search_symbol_sets", "Search symbol sets by name, category or description", SearchArgs),
    ToolSpec("create_symbol", "Create a new symbol in the ontology", SymbolCreate),
    ToolSpec("update_symbol", "Update an existing symbol in the ontology", UpdateSymbolArgs),
    ToolSpec("delete_symbol", "Delete a symbol from the ontology", DeleteSymbolArgs),
    ToolSpec("create_symbol_set", "Create a new weighted symbol set", SymbolSetCreate),
    ToolSpec("update_symbol_set", "Update an existing symbol set", UpdateSymbolSetArgs),
    ToolSpec("get_server_info", "Describe this server, its backend and its tools", NoArgs),
]


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _failure(result: Result, action: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"kind": result.error.kind.value, "message": result.error.message},
        "message": f"Failed to {action}: {result.error.message}",
    }


def _invalid_arguments(tool: str, error: ValidationError) -> Dict[str, Any]:
    details = "; ".join(
        f"{'.'.join(str(p) for p in item['loc']) or 'arguments'}: {item['msg']}" for item in error.errors()
    )
    return {
        "success": False,
        "error": {"kind": ErrorKind.INVALID_INPUT.value, "message": details},
        "message": f"Invalid arguments for {tool}",
    }


def to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SymbolsToolService:
    """Dispatches MCP tool calls, resource reads and prompts to the repository."""

    def __init__(self, repository: ISymbolRepository, backend: str = "memory"):
        self.repository = repository
        self.backend = backend
        self._specs = {spec.name: spec for spec in TOOL_SPECS}

    @property
    def specs(self) -> List[ToolSpec]:
        return list(self._specs.values())

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Validates `arguments` against the tool's model, then runs the tool."""
        spec = self._specs.get(name)
        if spec is None:
            return {"error": f"Unknown tool: {name}"}

        try:
            args = spec.arguments.model_validate(arguments or {})
        except ValidationError as e:
            logger.info("tool_arguments_rejected", tool=name, errors=e.error_count())
            return _invalid_arguments(name, e)

        handler = getattr(self, f"_tool_{name}")
        payload = await handler(args)
        logger.debug("tool_called", tool=name)
        return payload

    # --- Read tools ---

    async def _tool_get_symbols(self, args: PageArgs) -> Dict[str, Any]:
        result = await self.repository.get_symbols(limit=args.limit, offset=args.offset)
        if not result.success:
            return _failure(result, "retrieve symbols")
        return {
            "symbols": _dump(result.data),
            "count": len(result.data),
            "message": f"Retrieved {len(result.data)} symbols",
        }

    async def _tool_get_symbol(self, args: SymbolIdArgs) -> Dict[str, Any]:
        if not args.id.strip():
            return {"error": "Symbol ID cannot be empty"}

        result = await self.repository.get_symbol(args.id)
        if not result.success:
            return _failure(result, "retrieve symbol")
        found = result.data is not None
        return {
            "found": found,
            "symbol": _dump(result.data),
            "message": f'Found symbol "{args.id}"' if found else f'No symbol found with ID "{args.id}"',
        }

    async def _tool_search_symbols(self, args: SearchArgs) -> Dict[str, Any]:
        if not args.query.strip():
            return {"error": "Search query cannot be empty"}

        result = await self.repository.search_symbols(args.query, limit=args.limit, offset=args.offset)
        if not result.success:
            return _failure(result, "search symbols")
        return {
            "symbols": _dump(result.data),
            "count": len(result.data),
            "query": args.query,
            "message": f'Found {len(result.data)} symbols matching "{args.query}"',
        }

    async def _tool_filter_by_category(self, args: CategoryArgs) -> Dict[str, Any]:
        if not args.category.strip():
            return {"error": "Category name cannot be empty"}

        result = await self.repository.filter_by_category(args.category, limit=args.limit, offset=args.offset)
        if not result.success:
            return _failure(result, "filter symbols")
        return {
            "symbols": _dump(result.data),
            "count": len(result.data),
            "category": args.category,
            "message": f'Found {len(result.data)} symbols in category "{args.category}"',
        }

    async def _tool_get_categories(self, args: NoArgs) -> Dict[str, Any]:
        result = await self.repository.get_categories()
        if not result.success:
            return _failure(result, "retrieve categories")
        return {
            "categories": result.data,
            "count": len(result.data),
            "message": f"Retrieved {len(result.data)} categories",
        }

    async def _tool_get_symbol_sets(self, args: PageArgs) -> Dict[str, Any]:
        result = await self.repository.get_symbol_sets(limit=args.limit, offset=args.offset)
        if not result.success:
            return _failure(result, "retrieve symbol sets")
        return {
            "symbol_sets": _dump(result.data),
            "count": len(result.data),
            "message": f"Retrieved {len(result.data)} symbol sets",
        }

    async def _tool_search_symbol_sets(self, args: SearchArgs) -> Dict[str, Any]:
        if not args.query.strip():
            return {"error": "Search query cannot be empty"}

        result = await self.repository.search_symbol_sets(args.query, limit=args.limit, offset=args.offset)
        if not result.success:
            return _failure(result, "search symbol sets")
        return {
            "symbol_sets": _dump(result.data),
            "count": len(result.data),
            "query": args.query,
            "message": f'Found {len(result.data)} symbol sets matching "{args.query}"',
        }

    # --- Write tools ---

    async def _tool_create_symbol(self, args: SymbolCreate) -> Dict[str, Any]:
        result = await self.repository.create_symbol(args)
        if not result.success:
            return _failure(result, "create symbol")
        return {
            "success": True,
            "symbol": _dump(result.data),
            "message": f'Successfully created symbol "{args.name}" with ID "{args.id}"',
        }

    async def _tool_update_symbol(self, args: UpdateSymbolArgs) -> Dict[str, Any]:
        if not args.id.strip():
            return {"error": "Symbol ID cannot be empty"}

        changes = SymbolUpdate.model_validate(args.model_dump(exclude_unset=True, exclude={"id"}))
        result = await self.repository.update_symbol(args.id, changes)
        if not result.success:
            return _failure(result, "update symbol")
        return {
            "success": True,
            "symbol": _dump(result.data),
            "message": f'Successfully updated symbol with ID "{args.id}"',
        }

    async def _tool_delete_symbol(self, args: DeleteSymbolArgs) -> Dict[str, Any]:
        if not args.id.strip():
            return {"error": "Symbol ID cannot be empty"}

        result = await self.repository.delete_symbol(args.id, cascade=args.cascade)
        if not result.success:
            return _failure(result, "delete symbol")
        message = (
            f'Successfully deleted symbol "{args.id}" and removed it from related symbols'
            if args.cascade
            else f'Successfully deleted symbol "{args.id}"'
        )
        return {"success": True, "deleted": args.id, "message": message}

    async def _tool_create_symbol_set(self, args: SymbolSetCreate) -> Dict[str, Any]:
        result = await self.repository.create_symbol_set(args)
        if not result.success:
            return _failure(result, "create symbol set")
        return {
            "success": True,
            "symbol_set": _dump(result.data),
            "message": f'Successfully created symbol set "{args.name}" with ID "{args.id}"',
        }

    async def _tool_update_symbol_set(self, args: UpdateSymbolSetArgs) -> Dict[str, Any]:
        if not args.id.strip():
            return {"error": "Symbol set ID cannot be empty"}

        changes = SymbolSetUpdate.model_validate(args.model_dump(exclude_unset=True, exclude={"id"}))
        result = await self.repository.update_symbol_set(args.id, changes)
        if not result.success:
            return _failure(result, "update symbol set")
        return {
            "success": True,
            "symbol_set": _dump(result.data),
            "message": f'Successfully updated symbol set with ID "{args.id}"',
        }

    async def _tool_get_server_info(self, args: NoArgs) -> Dict[str, Any]:
        return {
            "name": SERVER_NAME,
            "version": __version__,
            "backend": self.backend,
            "tools": [spec.name for spec in self.specs],
            "resources": [CATEGORIES_URI, CATEGORY_URI_TEMPLATE],
            "prompts": [prompt["name"] for prompt in PROMPTS],
        }

    # --- Resources ---

    async def read_resource(self, uri: str) -> str:
        """Returns the JSON document behind a `symbols://` URI."""
        if uri == CATEGORIES_URI:
            result = await self.repository.get_categories()
            if not result.success:
                raise ValueError(result.error.message)
            return to_json({"categories": result.data, "count": len(result.data)})

        match = _CATEGORY_URI.match(uri)
        if match:
            category = match.group("category")
            result = await self.repository.filter_by_category(category, limit=CATEGORY_RESOURCE_LIMIT)
            if not result.success:
                raise ValueError(result.error.message)
            return to_json({"category": category, "symbols": _dump(result.data), "count": len(result.data)})

        raise ValueError(f"Unknown resource: {uri}")

    # --- Prompts ---

    async def render_prompt(self, name: str, arguments: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Returns {"description", "text"} for one of the PROMPTS."""
        arguments = arguments or {}
        if name == "analyze-symbol":
            return await self._analyze_symbol_prompt(arguments)
        if name == "curate-symbol-set":
            return await self._curate_symbol_set_prompt(arguments)
        raise ValueError(f"Unknown prompt: {name}")

    async def _analyze_symbol_prompt(self, arguments: Dict[str, str]) -> Dict[str, str]:
        symbol_id = (arguments.get("symbol_id") or "").strip()
        if not symbol_id:
            raise ValueError("symbol_id is required")

        result = await self.repository.get_symbol(symbol_id)
        if not result.success:
            raise ValueError(result.error.message)
        if result.data is None:
            raise ValueError(f'Symbol with ID "{symbol_id}" not found')

        symbol = result.data
        text = (
            f"Analyze the symbol \"{symbol.name}\" (id: {symbol.id}).\n\n"
            f"Stored record:\n{to_json(symbol.model_dump(mode='json', exclude={'created_at', 'updated_at'}))}\n\n"
            "Compare its interpretations across the listed contexts, explain how it relates to "
            f"{', '.join(symbol.related_symbols) or 'other symbols in the ontology'}, "
            "and suggest interpretations or related symbols that are missing."
        )
        return {"description": f"Analysis of {symbol.name}", "text": text}

    async def _curate_symbol_set_prompt(self, arguments: Dict[str, str]) -> Dict[str, str]:
        theme = (arguments.get("theme") or "").strip()
        if not theme:
            raise ValueError("theme is required")

        categories = await self.repository.get_categories()
        known = ", ".join(categories.data) if categories.success and categories.data else "none yet"
        text = (
            f"Curate a symbol set around the theme \"{theme}\".\n\n"
            f"Known categories: {known}.\n"
            "Use search_symbols and filter_by_category to find candidates, give each chosen symbol "
            "a weight between 0 and 1 reflecting how central it is to the theme, then call "
            "create_symbol_set with the result."
        )
        category = (arguments.get("category") or "").strip()
        if category:
            text += f"\nPrefer symbols from the \"{category}\" category."
        return {"description": f"Symbol set curation: {theme}", "text": text}


PROMPTS: List[Dict[str, Any]] = [
    {
        "name": "analyze-symbol",
        "description": "Analyze a symbol's meaning across its interpretations and relations",
        "arguments": [
            {"name": "symbol_id", "description": "ID of the symbol to analyze", "required": True},
        ],
    },
    {
        "name": "curate-symbol-set",
        "description": "Assemble a weighted symbol set around a theme",
        "arguments": [
            {"name": "theme", "description": "Theme of the set", "required": True},
            {"name": "category", "description": "Preferred category", "required": False},
        ],
    },
]
