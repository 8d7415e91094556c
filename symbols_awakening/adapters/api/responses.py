# symbols_awakening\adapters\api\responses.py
"""
Translation of `Result` envelopes into HTTP responses.

Success:  {"success": true, "data": ..., "pagination"?: {...}}
Failure:  {"success": false, "error": {"kind": ..., "message": ...}}
"""
from typing import Any, Dict, Iterable, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from symbols_awakening.core.domain.exceptions import ErrorKind
from symbols_awakening.core.domain.models import Result

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
}


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def kind_for_status(status_code: int) -> ErrorKind:
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorKind.NOT_FOUND
    if status_code == status.HTTP_409_CONFLICT:
        return ErrorKind.ALREADY_EXISTS
    if status_code < 500:
        return ErrorKind.INVALID_INPUT
    return ErrorKind.BACKEND_FAILURE


def error_response(kind: ErrorKind, message: str, status_code: Optional[int] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or status_for(kind),
        content={"success": False, "error": {"kind": kind.value, "message": message}},
    )


def envelope_response(result: Result, status_code: int = status.HTTP_200_OK, **extra: Any) -> JSONResponse:
    if not result.success:
        return error_response(result.error.kind, result.error.message)

    body: Dict[str, Any] = {"success": True, "data": jsonable_encoder(result.data)}
    body.update(jsonable_encoder(extra))
    return JSONResponse(status_code=status_code, content=body)


def page_info(limit: int, offset: int, items: Optional[Iterable[Any]]) -> Dict[str, int]:
    return {"limit": limit, "offset": offset, "count": len(list(items or []))}


def describe_validation_errors(errors: Iterable[Dict[str, Any]]) -> str:
    parts = []
    for error in errors:
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"
