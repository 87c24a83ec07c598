"""FastAPI Heartbeat. Lean."""

from __future__ import annotations

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware

import os
import re
import time
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from app.core.config import get_settings
from app.common.deps import get_current_user
from app.features.achievements.endpoints import router as achievements_router
from app.features.leaderboard.endpoints import router as leaderboard_router

_settings = get_settings()
logging.basicConfig(level=logging.DEBUG if _settings.debug else logging.INFO)

app = FastAPI(title=_settings.app_name, version=_settings.app_version)
_START_TIME = datetime.now(timezone.utc)


# ------------------------
# CORS Setup
# ------------------------
def _split_env_csv(name: str, default: str = ""):
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


_FRONTEND_ORIGINS = _split_env_csv(
    "ALLOW_ORIGINS",
    "http://localhost:5173,http://localhost:8080,http://127.0.0.1:5173,http://127.0.0.1:8080",
)

_CORS_ORIGIN_REGEX = re.compile(r"https?://(.+\.)?vercel\.app|https?://(localhost|127\.0\.0\.1)(:\d+)?", re.I)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_FRONTEND_ORIGINS,
    allow_origin_regex=_CORS_ORIGIN_REGEX.pattern,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger = logging.getLogger("request")
    logger.info("request.start", extra={"request_id": req_id, "path": request.url.path, "method": request.method})
    t0 = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info(
        "request.end",
        extra={
            "request_id": req_id,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": int((time.perf_counter() - t0) * 1000),
        },
    )
    return response


# ------------------------
# Routers
# ------------------------
protected_deps = [Depends(get_current_user)]

app.include_router(achievements_router, dependencies=protected_deps)
app.include_router(leaderboard_router, dependencies=protected_deps)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/healthz"
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    uptime_seconds = (now - _START_TIME).total_seconds()
    supabase_ready = bool(_settings.supabase_url and _settings.client_key)
    auth_mode = "hs256" if _settings.supabase_jwt_secret else ("jwks" if _settings.supabase_url else "missing-config")
    tags = sorted({t for r in app.routes for t in getattr(r, "tags", [])})

    return {
        "status": "ok" if supabase_ready else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round(uptime_seconds, 2),
        "version": _settings.app_version,
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "supabase": "configured" if supabase_ready else "missing-config",
            "auth": auth_mode,
        },
        "counts": {"routes": len(app.routes)},
        "tags": tags,
    }
