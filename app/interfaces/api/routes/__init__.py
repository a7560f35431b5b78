from fastapi import FastAPI

from .alerts import router as alerts_router
from .status import router as status_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(alerts_router)
    app.include_router(status_router)
