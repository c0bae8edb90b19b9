"""
Error helpers shared by every module.

Routes and services raise ``HTTPException`` whose ``detail`` is an
``{"error", "message"}`` dict; the handlers registered in ``main.py`` render
that dict as the JSON body.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


def api_error(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> HTTPException:
    detail: Dict[str, Any] = {"error": error}
    if message is not None:
        detail["message"] = message
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query"))
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg", "invalid value"))
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": "; ".join(messages)},
    )
