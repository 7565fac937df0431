"""
API module - HTTP surface for triggering and inspecting executions.
"""

from typing import Any


def register_routes(app: Any) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    from synthqa.api.routes import executions, recordings, scripts

    app.include_router(executions.router)
    app.include_router(scripts.router)
    app.include_router(recordings.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}


from synthqa.api.server import create_app, run_server  # noqa: E402

__all__ = ["register_routes", "create_app", "run_server"]
