from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from widget_access.db.health import db_healthcheck

router = APIRouter(tags=["internal"])


@router.get("/health")
async def health(request: Request):
    engine = request.app.state.db_engine  # type: ignore[attr-defined]
    async with engine.session() as s:
        ok = await db_healthcheck(s)
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ok" if ok else "degraded", "database": ok},
    )
