# Domain error taxonomy raised by the core (access control, scoping, lifecycle).
# Route handlers never translate these by hand; main.py maps each kind to an HTTP response.
from __future__ import annotations

from fastapi import status


class DomainError(Exception):
    """Base for recoverable business outcomes; carries the HTTP status it surfaces as."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Forbidden(DomainError):
    # Detail stays generic so a denial never describes the resource behind it
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting state"


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class InternalError(DomainError):
    """Storage or other infrastructure failure; never one of the business outcomes above."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error"
