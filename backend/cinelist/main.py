"""
CineList API: FastAPI application entry point.

Collaborative movie lists: owners invite up to two collaborators, directly or
through a shareable link. Routers live in cinelist/api/.
"""
from cinelist.core import logging as _logging  # noqa: F401 (configures root logging first)

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinelist.api import invites, lists, movies, users
from cinelist.core.config import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="CineList API",
    description="Collaborative movie lists with invites and shared notes.",
    version="0.1.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(lists.router,   prefix="/lists",   tags=["lists"])
app.include_router(invites.router, prefix="/invites", tags=["invites"])
app.include_router(users.router,   prefix="/users",   tags=["users"])
# Spans /movies and /lists/{id}/movies, so no prefix
app.include_router(movies.router,                     tags=["movies"])

logger.info("CineList API ready (env=%s, max members=%d)", settings.APP_ENV, settings.MAX_LIST_MEMBERS)


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": "0.1.0", "env": settings.APP_ENV}
