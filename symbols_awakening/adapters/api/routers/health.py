# symbols_awakening\adapters\api\routers\health.py
import time
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Response, status

from symbols_awakening import __version__
from symbols_awakening.adapters.api.dependencies import get_repository
from symbols_awakening.core.domain.models import utcnow
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["System"])


async def _check(repo: ISymbolRepository, response: Response) -> Dict[str, Any]:
    started = time.perf_counter()
    result = await repo.health_check()
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    if not result.success:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("health_check_failed", error=result.error.message)
        return {
            "success": False,
            "status": "unhealthy",
            "timestamp": utcnow().isoformat(),
            "error": result.error.message,
            "services": {"api": "healthy", "database": "unhealthy"},
        }

    return {
        "success": True,
        "status": "healthy",
        "timestamp": result.data.timestamp.isoformat(),
        "services": {"api": "healthy", "database": "healthy"},
        "version": __version__,
        "response_time_ms": elapsed_ms,
    }


@router.get("", status_code=status.HTTP_200_OK)
async def health(response: Response, repo: ISymbolRepository = Depends(get_repository)) -> Dict[str, Any]:
    """Round trip to the data store. 503 when it fails."""
    return await _check(repo, response)


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_probe() -> Dict[str, str]:
    """
    K8s Liveness Probe.
    Returns 200 OK if the process is serving requests.
    """
    return {"status": "ok", "service": "symbols-awakening-api"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_probe(response: Response, repo: ISymbolRepository = Depends(get_repository)) -> Dict[str, str]:
    """
    K8s Readiness Probe.
    Returns 503 Service Unavailable while the data store is unreachable.
    """
    result = await repo.health_check()
    if not result.success:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("readiness_probe_failed", error=result.error.message)
        return {"storage": "down"}
    return {"storage": "up"}
