from __future__ import annotations

import asyncio
import logging

from fastapi import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from .errors.handlers import problem_response, trace_id_from
from ..settings import get_api_config

logger = logging.getLogger(__name__)


class HandlerTimeoutMiddleware:
    """
    Caps total handler execution time. If exceeded, the handler task is
    cancelled (open transactions roll back) and a 504 Problem+JSON is returned.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float | None = None) -> None:
        self.app = app
        self.timeout_seconds = timeout_seconds or get_api_config().request_timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        async def _call_next() -> None:
            await self.app(scope, receive, send)

        try:
            await asyncio.wait_for(_call_next(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            request = Request(scope, receive=receive)
            logger.warning("handler timed out after %ss on %s", self.timeout_seconds, request.url.path)
            resp = problem_response(
                status=504,
                title="Gateway Timeout",
                detail="The request took too long to complete.",
                code="GATEWAY_TIMEOUT",
                instance=str(request.url),
                trace_id=trace_id_from(request),
            )
            await resp(scope, receive, send)
