"""Poolift Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from poolift import __version__
from poolift.config import settings
from poolift.database import init_db
from poolift.errors import PooliftError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield


app = FastAPI(
    title="Poolift",
    description="Pooled gifts for school groups and direct collections",
    version=__version__,
    lifespan=lifespan,
)

# CORS - the web client is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PooliftError)
async def poolift_error_handler(request: Request, exc: PooliftError):
    logger.debug("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


# --- Register API routers ---
from poolift.api.auth import router as auth_router  # noqa: E402
from poolift.api.groups import router as groups_router  # noqa: E402
from poolift.api.birthdays import router as birthdays_router  # noqa: E402
from poolift.api.parties import router as parties_router  # noqa: E402
from poolift.api.proposals import router as proposals_router  # noqa: E402
from poolift.api.gifts import router as gifts_router  # noqa: E402
from poolift.api.direct_gifts import router as direct_gifts_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(groups_router, prefix=API_PREFIX)
app.include_router(birthdays_router, prefix=API_PREFIX)
app.include_router(parties_router, prefix=API_PREFIX)
app.include_router(proposals_router, prefix=API_PREFIX)
app.include_router(gifts_router, prefix=API_PREFIX)
app.include_router(direct_gifts_router, prefix=API_PREFIX)


# --- WebSocket endpoints ---
from poolift.ws.changes import websocket_changes  # noqa: E402


@app.websocket("/ws/changes")
async def ws_changes_endpoint(
    ws: WebSocket,
    table: str = Query(default=""),
    column: str = Query(default=""),
    value: str = Query(default=""),
):
    await websocket_changes(ws, table, column, value)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.server_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
