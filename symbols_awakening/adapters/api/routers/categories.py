# symbols_awakening\adapters\api\routers\categories.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from symbols_awakening.adapters.api.dependencies import get_app_settings, get_repository
from symbols_awakening.adapters.api.responses import envelope_response
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository
from symbols_awakening.shared.config import Settings
from symbols_awakening import __version__

router = APIRouter(tags=["Catalog"])


@router.get("/categories", summary="List distinct categories")
async def list_categories(repo: ISymbolRepository = Depends(get_repository)) -> JSONResponse:
    result = await repo.get_categories()
    return envelope_response(result, count=len(result.data or []))


@router.get("", summary="Service information")
async def service_info(settings: Settings = Depends(get_app_settings)) -> dict:
    """Entry point listing the available resource collections."""
    prefix = settings.API_PREFIX
    return {
        "success": True,
        "data": {
            "name": settings.APP_NAME,
            "version": __version__,
            "backend": settings.STORAGE_BACKEND.value,
            "endpoints": {
                "symbols": f"{prefix}/symbols",
                "symbol_sets": f"{prefix}/symbol-sets",
                "categories": f"{prefix}/categories",
                "health": "/health",
            },
        },
    }
