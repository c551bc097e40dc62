import logging

from starlette.middleware.base import BaseHTTPMiddleware

from .handlers import problem_response, trace_id_from

logger = logging.getLogger(__name__)


class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(f"{type(exc).__name__} on {request.url.path} (500): {exc}", exc_info=True)
            return problem_response(
                status=500,
                title="Internal Server Error",
                detail="An unexpected error occurred.",
                code="INTERNAL_ERROR",
                instance=str(request.url),
                trace_id=trace_id_from(request),
            )
