# symbols_awakening\adapters\api\routers\symbols.py
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from symbols_awakening.adapters.api.dependencies import get_repository
from symbols_awakening.adapters.api.responses import envelope_response, error_response, page_info
from symbols_awakening.core.domain.exceptions import ErrorKind, SymbolNotFoundError
from symbols_awakening.core.domain.models import (
    DEFAULT_LIMIT,
    MAX_PAGE_SIZE,
    SymbolCreate,
    SymbolUpdate,
)
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/symbols", tags=["Symbols"])


@router.get("", summary="List symbols")
async def list_symbols(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by text"),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    """
    Lists symbols ordered by name. `search` takes precedence over `category`
    when both are given.
    """
    if search:
        result = await repo.search_symbols(search, limit=limit, offset=offset)
    elif category:
        result = await repo.filter_by_category(category, limit=limit, offset=offset)
    else:
        result = await repo.get_symbols(limit=limit, offset=offset)

    query = {key: value for key, value in (("category", category), ("search", search)) if value}
    return envelope_response(result, pagination=page_info(limit, offset, result.data), query=query)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a symbol")
async def create_symbol(
    payload: SymbolCreate,
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.create_symbol(payload)
    return envelope_response(result, status_code=status.HTTP_201_CREATED)


@router.get("/search", summary="Search symbols")
async def search_symbols(
    q: str = Query(..., min_length=1, description="Substring matched against name, category and description"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.search_symbols(q, limit=limit, offset=offset)
    return envelope_response(result, pagination=page_info(limit, offset, result.data), query={"q": q})


@router.get("/category/{category}", summary="List symbols of one category")
async def symbols_by_category(
    category: str,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.filter_by_category(category, limit=limit, offset=offset)
    return envelope_response(result, pagination=page_info(limit, offset, result.data), category=category)


@router.get("/{symbol_id}", summary="Get a symbol by id")
async def get_symbol(symbol_id: str, repo: ISymbolRepository = Depends(get_repository)) -> JSONResponse:
    result = await repo.get_symbol(symbol_id)
    if result.success and result.data is None:
        return error_response(ErrorKind.NOT_FOUND, SymbolNotFoundError(symbol_id).message)
    return envelope_response(result)


@router.put("/{symbol_id}", summary="Update a symbol")
async def update_symbol(
    symbol_id: str,
    payload: SymbolUpdate,
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.update_symbol(symbol_id, payload)
    return envelope_response(result)


@router.delete("/{symbol_id}", summary="Delete a symbol")
async def delete_symbol(
    symbol_id: str,
    cascade: bool = Query(False, description="Also remove the id from other symbols' related_symbols"),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.delete_symbol(symbol_id, cascade=cascade)
    if result.success:
        logger.info("api_symbol_deleted", symbol_id=symbol_id, cascade=cascade)
    return envelope_response(result, message=f'Symbol "{symbol_id}" deleted')
