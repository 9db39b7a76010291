from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for authorization."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class ErrorCode(str, Enum):
    """Machine-readable error kinds exposed to API clients."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    OTP_REQUIRED = "OTP_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    BAD_USER_INPUT = "BAD_USER_INPUT"
    CONFLICT = "CONFLICT"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"
    OTP_EXPIRED = "OTP_EXPIRED"
    INVALID_OTP = "INVALID_OTP"
    INTERNAL = "INTERNAL_SERVER_ERROR"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
