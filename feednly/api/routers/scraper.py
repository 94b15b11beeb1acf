"""Scraper endpoints.

Routes
------
GET /              Liveness banner
GET /health        Uptime plus which escalation stages are configured
GET /scrape?url=   Run the full acquisition ladder for one URL
"""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from feednly.acquisition import acquire
from feednly.config import settings

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RootResponse(BaseModel):
    ok: bool
    status: str
    uptime: float


class HealthResponse(BaseModel):
    ok: bool
    uptime: float
    mobileProxyConfigured: bool
    brightDataConfigured: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _uptime(request: Request) -> float:
    return round(time.monotonic() - request.app.state.started_at, 3)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/", response_model=RootResponse)
def root(request: Request) -> dict[str, Any]:
    return {"ok": True, "status": "feednly-scraper", "uptime": _uptime(request)}


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> dict[str, Any]:
    return {
        "ok": True,
        "uptime": _uptime(request),
        "mobileProxyConfigured": settings.proxy_configured,
        "brightDataConfigured": settings.unlocker_configured,
    }


@router.get("/scrape")
def scrape(url: Optional[str] = None) -> dict[str, Any]:
    """Acquire *url* and return the extracted product data.

    Runs in FastAPI's worker thread pool, so concurrent requests do not block
    each other.
    """
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="Missing url query parameter")
    try:
        return acquire(url)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        print(f"[api] scrape failed for {url}: {exc!r}")
        raise HTTPException(status_code=500, detail=str(exc) or "Scrape failed") from exc
