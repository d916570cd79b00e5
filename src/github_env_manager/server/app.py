"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the services; this module owns CORS and the
mapping of domain errors onto HTTP responses.
"""

from __future__ import annotations

import logging

import requests
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from github_env_manager import __version__
from github_env_manager.config import EnvManagerSettings
from github_env_manager.errors import (
    EmptySource,
    GatewayError,
    NamesNotFound,
    NotFound,
    Unauthenticated,
)
from github_env_manager.server.routes import router

logger = logging.getLogger(__name__)


def _gateway_status(error: GatewayError) -> int:
    # Client errors from GitHub (bad token, missing scope, validation) pass through;
    # anything else is GitHub's failure, not the caller's.
    if 400 <= error.status_code < 500:
        return error.status_code
    return 502


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(Unauthenticated)
    def handle_unauthenticated(_request: Request, exc: Unauthenticated) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(NotFound)
    def handle_not_found(_request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(EmptySource)
    def handle_empty_source(_request: Request, exc: EmptySource) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NamesNotFound)
    def handle_names_not_found(_request: Request, exc: NamesNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "missing": list(exc.missing)},
        )

    @app.exception_handler(GatewayError)
    def handle_gateway_error(_request: Request, exc: GatewayError) -> JSONResponse:
        logger.warning(
            "GitHub API error",
            extra={"status_code": exc.status_code, "method": exc.method, "url": exc.url},
        )
        return JSONResponse(
            status_code=_gateway_status(exc),
            content={"detail": exc.message, "upstreamStatus": exc.status_code},
        )

    @app.exception_handler(requests.RequestException)
    def handle_transport_error(_request: Request, exc: requests.RequestException) -> JSONResponse:
        logger.warning("GitHub API unreachable", extra={"error": str(exc)})
        return JSONResponse(status_code=502, content={"detail": f"GitHub API unreachable: {exc}"})

    @app.exception_handler(ValueError)
    def handle_value_error(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app(settings: EnvManagerSettings | None = None) -> FastAPI:
    settings = settings or EnvManagerSettings()

    app = FastAPI(
        title="GitHub Environment Manager",
        version=__version__,
        description="REST API for GitHub deployment environments, variables and secrets.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(router, prefix="/api")
    return app
