from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """
    Recoverable error raised by services.

    Endpoints translate it to `HTTPException(status_code, detail=to_detail())`, so
    `code` must stay stable for API consumers.
    """

    message: str
    code: str = "DOMAIN_ERROR"
    status_code: int = 400
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_detail(self) -> dict:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        for key, value in self.details.items():
            if value is not None:
                detail[key] = value
        return detail


@dataclass(eq=False)
class InvalidStateTransition(DomainError):
    code: str = "INVALID_STATE_TRANSITION"
    status_code: int = 400


@dataclass(eq=False)
class StaleStateConflict(DomainError):
    code: str = "STALE_STATE_CONFLICT"
    status_code: int = 409


@dataclass(eq=False)
class ValidationError(DomainError):
    code: str = "VALIDATION_ERROR"
    status_code: int = 400


@dataclass(eq=False)
class NotFound(DomainError):
    code: str = "NOT_FOUND"
    status_code: int = 404


INTERNAL_ERROR_DETAIL = {"code": "INTERNAL_ERROR", "message": "Internal server error"}
