# src/credgrain/api/app.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from credgrain.api.errors import ApiError
from credgrain.api.routes_public import public_router
from credgrain.api.security import RequestSizeLimitMiddleware
from credgrain.config import ServiceConfig, load_service_config
from credgrain.ledger.errors import CredGrainError, InvariantError
from credgrain.structured_logging import log_event

log = logging.getLogger("credgrain.http")


def create_app(cfg: Optional[ServiceConfig] = None) -> FastAPI:
    """Create the FastAPI application.

    cfg defaults to load_service_config() (CREDGRAIN_* env, optional file).
    Docs endpoints are only served in dev mode.
    """
    cfg = cfg or load_service_config()

    if cfg.mode == "prod":
        app = FastAPI(title="credgrain", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="credgrain")

    app.state.cfg = cfg

    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    @app.exception_handler(CredGrainError)
    async def _core_error(request: Request, exc: CredGrainError) -> JSONResponse:
        api_err = ApiError.from_core(exc)
        if isinstance(exc, InvariantError):
            log.error("invariant violation: %s", exc)
        log_event(
            log,
            "request_rejected",
            path=str(request.url.path or ""),
            status=api_err.status_code,
            code=api_err.code,
            reason=api_err.message,
        )
        return JSONResponse(status_code=api_err.status_code, content=api_err.to_json())

    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=cfg.max_request_bytes)
    app.include_router(public_router)
    return app
