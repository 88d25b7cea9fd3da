"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes all route modules.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowcanvas.config import CORS_ORIGINS
from flowcanvas.logging_config import get_api_logger

from .database import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage database lifecycle."""
    await init_db()
    get_api_logger().info("Canvas API started")
    yield
    await close_db()


app = FastAPI(title="Flow Canvas API", version="2.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from .event_bus import router as stream_router  # noqa: E402
from .routes.jobs import router as jobs_router  # noqa: E402
from .routes.canvas import router as canvas_router  # noqa: E402

app.include_router(stream_router)
app.include_router(jobs_router)
app.include_router(canvas_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}
