"""Authorization rules as a pure decision table.

``evaluate`` inspects identity state, role and resource ownership and returns
either an allow decision or the first failing rule, in this order:

1. no identity                         -> UNAUTHENTICATED
2. identity not OTP-verified           -> OTP_REQUIRED
3. admin-only policy, role not ADMIN   -> FORBIDDEN
4. owner-or-admin policy, not owner    -> FORBIDDEN

It has no side effects; :class:`~employee_portal.access.gate.AccessGate`
performs the OTP re-issue that accompanies rule 2.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.enums import ErrorCode, Role


class IdentityState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    UNVERIFIED = "authenticated-unverified"
    VERIFIED = "authenticated-verified"


class Policy(str, Enum):
    VERIFIED = "verified"
    ADMIN = "admin"
    OWNER_OR_ADMIN = "owner-or-admin"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    failure: Optional[ErrorCode] = None
    reason: str = ""


ALLOW = Decision(allowed=True)


def evaluate(
    state: IdentityState,
    role: Optional[Role],
    policy: Policy,
    *,
    actor_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> Decision:
    if state == IdentityState.UNAUTHENTICATED:
        return Decision(False, ErrorCode.UNAUTHENTICATED, "Not authenticated")
    if state == IdentityState.UNVERIFIED:
        return Decision(False, ErrorCode.OTP_REQUIRED, "Email not verified. A new OTP has been sent to your email.")

    is_admin = role == Role.ADMIN
    if policy == Policy.ADMIN and not is_admin:
        return Decision(False, ErrorCode.FORBIDDEN, "Admin access required")
    if policy == Policy.OWNER_OR_ADMIN and not is_admin:
        # an unknown owner (missing resource) is never a match
        if owner_id is None or actor_id is None or owner_id != actor_id:
            return Decision(False, ErrorCode.FORBIDDEN, "Access denied")
    return ALLOW
