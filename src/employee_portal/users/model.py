from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: account identity.

    Note: Plain data object (no DB access code). ``email`` is stored case-folded.
    """

    id: str
    email: str
    password_hash: str
    role: Role
    otp_hash: Optional[str] = None
    otp_expires: Optional[datetime] = None
    otp_verified: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Identity:
    """What the bearer token resolves to; verification state lives in the DB."""

    user_id: str
    role: Role
