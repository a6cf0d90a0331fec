"""Middleware registration."""

from fastapi import FastAPI

from core29.config import Settings
from core29.middleware.cors import setup_cors
from core29.middleware.error_handler import setup_error_handlers
from core29.middleware.logging import setup_logging
from core29.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost),
    so CORS is added last to wrap error responses too.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
