# symbols_awakening\adapters\api\routers\symbol_sets.py
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from symbols_awakening.adapters.api.dependencies import get_repository
from symbols_awakening.adapters.api.responses import envelope_response, error_response, page_info
from symbols_awakening.core.domain.exceptions import ErrorKind, SymbolSetNotFoundError
from symbols_awakening.core.domain.models import (
    DEFAULT_LIMIT,
    MAX_PAGE_SIZE,
    SymbolSetCreate,
    SymbolSetUpdate,
)
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository

router = APIRouter(prefix="/symbol-sets", tags=["Symbol Sets"])


@router.get("", summary="List symbol sets")
async def list_symbol_sets(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.get_symbol_sets(limit=limit, offset=offset)
    return envelope_response(result, pagination=page_info(limit, offset, result.data))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a symbol set")
async def create_symbol_set(
    payload: SymbolSetCreate,
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.create_symbol_set(payload)
    return envelope_response(result, status_code=status.HTTP_201_CREATED)


@router.get("/search", summary="Search symbol sets")
async def search_symbol_sets(
    q: str = Query(..., min_length=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.search_symbol_sets(q, limit=limit, offset=offset)
    return envelope_response(result, pagination=page_info(limit, offset, result.data), query={"q": q})


@router.get("/{set_id}", summary="Get a symbol set by id")
async def get_symbol_set(set_id: str, repo: ISymbolRepository = Depends(get_repository)) -> JSONResponse:
    result = await repo.get_symbol_set(set_id)
    if result.success and result.data is None:
        return error_response(ErrorKind.NOT_FOUND, SymbolSetNotFoundError(set_id).message)
    return envelope_response(result)


@router.put("/{set_id}", summary="Update a symbol set")
async def update_symbol_set(
    set_id: str,
    payload: SymbolSetUpdate,
    repo: ISymbolRepository = Depends(get_repository),
) -> JSONResponse:
    result = await repo.update_symbol_set(set_id, payload)
    return envelope_response(result)


@router.delete("/{set_id}", summary="Delete a symbol set")
async def delete_symbol_set(set_id: str, repo: ISymbolRepository = Depends(get_repository)) -> JSONResponse:
    result = await repo.delete_symbol_set(set_id)
    return envelope_response(result, message=f'Symbol set "{set_id}" deleted')
