"""FastAPI application factory.

Uptime
------
The app records its creation time for the uptime fields of ``/`` and
``/health``.

Errors
------
Every ``HTTPException`` is rendered as ``{"ok": false, "error": ...}`` so
clients see the same envelope as a blocked acquisition.
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from feednly.api.routers import scraper as scraper_router


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Feednly Scraper",
        description=(
            "Fetches a single product page through escalating acquisition "
            "stages (direct render, proxied render, remote unlocker) and "
            "returns its title, description, price and ranked images."
        ),
        version="1.0.0",
    )
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)

    app.include_router(scraper_router.router, tags=["scraper"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn feednly.api.app:app
app = create_app()
