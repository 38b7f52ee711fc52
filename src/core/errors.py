"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``src.api.main`` renders them as ``{"detail", "fields"}``
JSON with the status code carried by each class. Nothing here knows about
FastAPI.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, detail: str, *, fields: Optional[Iterable[str]] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.fields: List[str] = list(fields or [])


class ValidationError(ApiError):
    """Malformed or missing caller input. ``fields`` names every offender."""

    status_code = 400


class ConflictError(ApiError):
    status_code = 400


class AuthError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class PendingRegistrationNotFound(NotFoundError):
    """No pending record for the caller; answered as a bad request."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("no pending registration")


class StoreError(ApiError):
    """Unexpected persistence failure. Store internals never reach the response."""

    status_code = 500

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(detail)
