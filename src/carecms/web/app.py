"""FastAPI preview service for the carecms content core."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from carecms.content.pipeline import renderer_from_config
from carecms.core.config import configure_logging, load_config
from carecms.core.models import AppConfig
from carecms.web.security import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or load_config()
    configure_logging(config.log_level)

    app = FastAPI(title="carecms preview", docs_url=None, redoc_url=None)
    app.state.config = config
    app.state.renderer = renderer_from_config(config)

    app.add_middleware(SecurityHeadersMiddleware)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled server error")
        return JSONResponse({"detail": "Internal server error"}, status_code=500)

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok", "sanitizer": app.state.renderer.sanitizer.name}

    from carecms.web.routes import preview

    app.include_router(preview.router)

    logger.info("Preview service ready (sanitizer=%s)", config.sanitizer_backend.value)
    return app
