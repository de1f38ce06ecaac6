"""
Scraping Job Runner API
Run with: uvicorn api.server:app --reload --host 0.0.0.0 --port 8000
"""
import logging
import os
import sys

# Add project root to sys.path so top-level modules resolve
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config as runner_config
from api.routes.health import router as health_router
from api.routes.jobs import router as jobs_router
from errors import ScrapingError

_log = logging.getLogger(__name__)


async def _scraping_error_handler(request: Request, exc: ScrapingError):
    _log.warning(f"[{request.url.path}] {exc.code}: {exc.message} ({exc.details})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "Invalid job request", "details": details})


def create_app() -> FastAPI:
    app = FastAPI(title="Scraping Job Runner API", version="1.0.0")

    # ── CORS (allow Vite dev server) ───────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=runner_config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ScrapingError, _scraping_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # ── API routes ─────────────────────────────────────────────────────────────
    app.include_router(health_router, prefix="/api")
    app.include_router(jobs_router, prefix="/api")
    return app


app = create_app()
