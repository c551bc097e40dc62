from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from widget_access.exceptions import TransactionFailure, WidgetAccessError

logger = logging.getLogger(__name__)

PROBLEM_MT = "application/problem+json"

_TRACE_HEADERS = ("x-request-id", "x-correlation-id", "x-trace-id")


def trace_id_from(request: Request) -> str | None:
    for h in _TRACE_HEADERS:
        v = request.headers.get(h)
        if v:
            return v
    return None


def problem_response(
    *,
    status: int,
    title: str,
    detail: Any = None,
    type_uri: str = "about:blank",
    instance: str | None = None,
    code: str | None = None,
    errors: list[dict] | None = None,
    trace_id: str | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"type": type_uri, "title": title, "status": status}
    if detail is not None:
        body["detail"] = detail
    if instance:
        body["instance"] = instance
    if code:
        body["code"] = code
    if errors:
        body["errors"] = errors
    if trace_id:
        body["trace_id"] = trace_id
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_MT)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(WidgetAccessError)
    async def handle_widget_access_error(request: Request, exc: WidgetAccessError):
        errors = None
        if exc.detail is not None and not isinstance(exc, TransactionFailure):
            errors = exc.detail if isinstance(exc.detail, list) else [exc.detail]
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return problem_response(
            status=exc.status_code,
            title=exc.title,
            detail=exc.message,
            code=exc.code,
            errors=errors,
            instance=str(request.url),
            trace_id=trace_id_from(request),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return problem_response(
            status=422,
            title="Unprocessable Entity",
            detail="Validation failed.",
            code="VALIDATION_ERROR",
            errors=errors,
            instance=str(request.url),
            trace_id=trace_id_from(request),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        title = {404: "Not Found", 405: "Method Not Allowed"}.get(exc.status_code, "Error")
        return problem_response(
            status=exc.status_code,
            title=title,
            detail=exc.detail,
            instance=str(request.url),
            trace_id=trace_id_from(request),
        )
