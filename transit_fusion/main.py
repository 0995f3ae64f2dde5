from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from transit_fusion.adapters.api.controllers.realtime import router as realtime_router
from transit_fusion.adapters.api.dependencies import build_refresh_service

logger = logging.getLogger("transit_fusion")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the static schedule, then keep the realtime feeds fresh."""

    refresh = build_refresh_service()
    app.state.refresh_service = refresh

    if await refresh.load_schedule():
        # The periodic task runs its first cycle immediately.
        refresh.start()
    else:
        logger.error(
            "Schedule unavailable: %s", refresh.state.schedule_status.message
        )

    yield

    await refresh.stop()


app = FastAPI(title="Transit Fusion", lifespan=lifespan)
app.include_router(realtime_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return JSON for unexpected errors so the map client can show them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRANSIT_FUSION_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
