"""
API Server - FastAPI application for the execution service.

Provides:
- The script execution trigger and status endpoints
- Script storage and parse preview
- Recording to script conversion
- Health check endpoint
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from synthqa import __version__
from synthqa.api.state import AppState, build_app_state, get_app_state, set_app_state
from synthqa.config import get_settings
from synthqa.config.settings import Settings
from synthqa.exceptions import NotFoundError, SynthQAError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int) -> JSONResponse:
    """The ``{success: false, error}`` body every failing route returns."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(settings: Optional[Settings] = None, state: Optional[AppState] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to build stores from (defaults to get_settings())
        state: Prebuilt state; takes precedence over settings

    Returns:
        FastAPI application instance
    """
    if state is None:
        state = build_app_state(settings or get_settings())
    set_app_state(state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Background runs still finalize their records on shutdown
        await get_app_state().manager.shutdown()

    app = FastAPI(
        title="SynthQA",
        description="Browser test execution service",
        version=__version__,
        debug=state.settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=state.settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SynthQAError)
    async def synthqa_error_handler(request: Request, exc: SynthQAError) -> JSONResponse:
        status_code = 404 if isinstance(exc, NotFoundError) else 500
        if status_code == 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.message, status_code)

    from synthqa.api import register_routes
    register_routes(app)

    return app


def run_server(settings: Optional[Settings] = None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Run the API server with uvicorn.

    Args:
        settings: Application settings
        host: Host to bind to (defaults to settings)
        port: Port to bind to (defaults to settings)
    """
    import uvicorn

    settings = settings or get_settings()
    host = host or settings.server.host
    port = port or settings.server.port

    app = create_app(settings)
    logger.info(f"Starting SynthQA API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="debug" if settings.debug else "warning")
