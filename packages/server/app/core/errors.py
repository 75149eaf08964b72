"""
Structured errors surfaced by the tenancy core and the domain services.

Each error carries a stable string code (``ErrorCode``), a human message and
an optional payload. They are plain exceptions so the core stays usable
outside of HTTP; ``app.main`` maps them onto the JSON error envelope.
"""

from __future__ import annotations

from typing import Any, Iterable

from orghub_shared.schemas.common import ErrorCode, Role


class TenancyError(Exception):
    """Base error for authentication, tenancy and authorization failures."""

    code: ErrorCode = ErrorCode.FORBIDDEN
    status_code: int = 403

    def __init__(self, message: str, **payload: Any) -> None:
        self.message = message
        self.payload = payload
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "status": self.status_code,
            **self.payload,
        }


# -- Authentication --


class UnauthorizedError(TenancyError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


# -- Tenancy --


class NoOrganizationError(TenancyError):
    code = ErrorCode.NO_ORGANIZATION
    status_code = 409

    def __init__(self, message: str = "No active organization selected") -> None:
        super().__init__(message)


class NotMemberError(TenancyError):
    code = ErrorCode.NOT_MEMBER
    status_code = 403

    def __init__(self, message: str = "User is not a member of this organization") -> None:
        super().__init__(message)


class NoSessionError(TenancyError):
    code = ErrorCode.NO_SESSION
    status_code = 401

    def __init__(self, message: str = "No active session found") -> None:
        super().__init__(message)


# -- Authorization --


class ForbiddenError(TenancyError):
    code = ErrorCode.FORBIDDEN
    status_code = 403

    @classmethod
    def insufficient_role(cls, allowed: Iterable[Role], current: Role) -> "ForbiddenError":
        required = [Role(r).value for r in allowed]
        return cls(
            f"Insufficient permissions. Required roles: {', '.join(required)}",
            required_roles=required,
            current_role=Role(current).value,
        )


# -- Domain --


class NotFoundError(TenancyError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class ConflictError(TenancyError):
    code = ErrorCode.CONFLICT
    status_code = 409
