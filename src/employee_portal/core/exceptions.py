from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .enums import ErrorCode


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class DomainError(Exception):
    """Base exception for business rule violations.

    ``extensions`` is picked up by graphql-core when the exception is wrapped
    into a ``GraphQLError``, so clients always receive a stable ``code``.
    """

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.code.value}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = ErrorCode.BAD_USER_INPUT

    def __init__(self, message: str, field_errors: Sequence[FieldError] = ()):
        super().__init__(message)
        self.field_errors = list(field_errors)

    @property
    def extensions(self) -> Dict[str, Any]:
        ext = super().extensions
        if self.field_errors:
            ext["validationErrors"] = [{"field": e.field, "message": e.message} for e in self.field_errors]
        return ext


class AuthenticationError(DomainError):
    """Raised when no valid identity is attached to the request."""

    code = ErrorCode.UNAUTHENTICATED


class VerificationRequiredError(DomainError):
    """Raised when the identity exists but its email is not OTP-verified."""

    code = ErrorCode.OTP_REQUIRED

    def __init__(self, message: str, *, email: str):
        super().__init__(message)
        self.email = email

    @property
    def extensions(self) -> Dict[str, Any]:
        ext = super().extensions
        ext["email"] = self.email
        ext["requiresOTPVerification"] = True
        return ext


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = ErrorCode.FORBIDDEN


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND


class ConflictError(DomainError):
    """Raised when a write would break a uniqueness rule."""

    code = ErrorCode.CONFLICT


class DeliveryError(DomainError):
    """Raised by notifiers; callers turn it into a logged outcome."""

    code = ErrorCode.EMAIL_SEND_FAILED


class OtpExpiredError(DomainError):
    code = ErrorCode.OTP_EXPIRED


class InvalidOtpError(DomainError):
    code = ErrorCode.INVALID_OTP


def error_code_of(exc: Optional[BaseException]) -> ErrorCode:
    if isinstance(exc, DomainError):
        return exc.code
    return ErrorCode.INTERNAL
