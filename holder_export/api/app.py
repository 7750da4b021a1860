"""HTTP surface of the holder export service.

Routes:
    GET /                               -> {"message": "Hello World"}
    GET /holders/{mint_address}         -> holders.csv (owner,amount)
    GET /holders/{mint_address}/airdrop -> airdrop.csv (owner,share)

Every HolderExportError becomes a 500 with ``{"error": "<message>"}``.
"""

import logging
import re
import time
from typing import Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..core.config import AppConfig, get_config
from ..core.exceptions import HolderExportError
from ..core.types import ExportVariant
from ..orchestrator import HolderExportOrchestrator

logger = logging.getLogger(__name__)


def _csv_response(body: bytes, variant: ExportVariant) -> Response:
    return Response(
        content=body,
        status_code=200,
        headers={
            "Content-Type": "text/csv",
            "Content-Disposition": f"attachment; filename={variant.filename}",
        },
    )


def create_app(
    config: Optional[AppConfig] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Service configuration (loaded from the environment if omitted)
        transport: Optional httpx transport handed to every upstream provider

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()

    app = FastAPI(title="Token Holder Export API", version=__version__)
    app.state.config = config
    app.state.transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=_origin_regex(config.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token"],
        max_age=300,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        )
        return response

    @app.exception_handler(HolderExportError)
    async def holder_export_error_handler(request: Request, exc: HolderExportError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error in {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    def _orchestrator(request: Request) -> HolderExportOrchestrator:
        return HolderExportOrchestrator(
            request.app.state.config, transport=request.app.state.transport
        )

    @app.get("/")
    def hello_world():
        return {"message": "Hello World"}

    @app.get("/holders/{mint_address}")
    def get_holders(mint_address: str, request: Request):
        body = _orchestrator(request).export_csv(mint_address, ExportVariant.HOLDERS)
        return _csv_response(body, ExportVariant.HOLDERS)

    @app.get("/holders/{mint_address}/airdrop")
    def get_airdrop(
        mint_address: str,
        request: Request,
        min_amount: Optional[float] = Query(None, ge=0),
        pool: Optional[float] = Query(None, gt=0),
        exclude: Optional[list[str]] = Query(None),
    ):
        orchestrator = _orchestrator(request)
        distribution = orchestrator.resolve_distribution(
            min_amount=min_amount, pool_size=pool, excluded_owners=exclude
        )
        body = orchestrator.export_csv(mint_address, ExportVariant.AIRDROP, distribution)
        return _csv_response(body, ExportVariant.AIRDROP)

    return app


def _origin_regex(origins: list[str]) -> str:
    """Translate wildcard origins such as ``https://*`` into one regex."""
    patterns = []
    for origin in origins:
        if origin == "*":
            return ".*"
        escaped = re.escape(origin).replace(r"\*", ".*")
        patterns.append(f"(?:{escaped})")
    return "^(?:" + "|".join(patterns) + ")$" if patterns else "^$"
