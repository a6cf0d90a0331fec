"""Domain errors raised by the service layer.

The global error handler maps each one to its status code with a
``{"detail": ...}`` body, so services never import FastAPI.
"""

from __future__ import annotations


class Core29Error(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(Core29Error):
    """Input rejected before any computation or write."""

    status_code = 422


class NotFoundError(Core29Error):
    """Referenced user, battle, or location does not exist."""

    status_code = 404


class ConflictError(Core29Error):
    """Request collides with existing state (e.g. a live battle for the same pair)."""

    status_code = 409


class InvalidTransitionError(Core29Error, ValueError):
    """Battle state change not allowed from the current status."""

    status_code = 409
