"""
Error taxonomy for the API.

Every failure a handler can report maps to one of these classes. They are
raised by services and adapters and rendered into the JSON envelope
(``{"success": false, "error": ...}``) by the exception handlers in
``videovault.main``.
"""

from typing import Any


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, **self.details}


class BadRequest(AppError):
    status_code = 400


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class UpstreamFailure(AppError):
    """An origin or the Bot API answered with a non-success status or could not be reached."""

    status_code = 500

    def __init__(self, message: str, *, upstream_status: int | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if upstream_status is not None:
            details["status"] = upstream_status
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class StoreFailure(AppError):
    status_code = 500
