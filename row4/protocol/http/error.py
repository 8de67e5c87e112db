from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...eval import MonteCarloWorkerError


logger = logging.getLogger(__name__)

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "unprocessable_entity",
}


def error_envelope(
    *,
    code: str,
    message: str,
    request_id: str,
    client_error: bool,
    field_errors: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "code": code,
        "message": message,
        "type": "client_error" if client_error else "server_error",
        "request_id": request_id,
    }
    if field_errors:
        body["field_errors"] = field_errors
    return {"error": body}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _status_to_code(status_code: int) -> str:
    if status_code in _STATUS_CODES:
        return _STATUS_CODES[status_code]
    if status_code >= 500:
        return "internal_error"
    return "error"


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, HTTPException):
        return await exception_handler(request, exc)
    payload = error_envelope(
        code=_status_to_code(exc.status_code),
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        request_id=_request_id(request),
        client_error=400 <= exc.status_code < 500,
    )
    return JSONResponse(status_code=exc.status_code, content=payload)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    field_errors: List[Dict[str, str]] = []
    if isinstance(exc, RequestValidationError):
        for e in exc.errors():
            loc = ".".join(str(p) for p in e.get("loc", ()) if p is not None)
            field_errors.append(
                {
                    "field": loc,
                    "code": str(e.get("type", "value_error")),
                    "message": str(e.get("msg", "invalid value")),
                }
            )
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        request_id=_request_id(request),
        client_error=True,
        field_errors=field_errors or None,
    )
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


async def worker_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("evaluation failed: %s", exc.__cause__ or exc, extra={"request_id": _request_id(request)})
    payload = error_envelope(
        code="evaluation_failed",
        message="Position evaluation failed",
        request_id=_request_id(request),
        client_error=False,
    )
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)
    if isinstance(exc, MonteCarloWorkerError):
        return await worker_error_handler(request, exc)
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        request_id=_request_id(request),
        client_error=False,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
