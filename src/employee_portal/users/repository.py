from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    async def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    async def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    async def find_many_by_ids(self, user_ids: Iterable[str]) -> Sequence[User]:
        """Batch fetch; rows come back in no particular order."""
        raise NotImplementedError

    async def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        otp_hash: Optional[str],
        otp_expires: Optional[datetime],
    ) -> User:
        raise NotImplementedError

    async def set_otp(self, user_id: str, *, otp_hash: str, otp_expires: datetime) -> bool:
        raise NotImplementedError

    async def mark_verified(self, user_id: str) -> bool:
        """Flip ``otp_verified`` and clear any pending code."""
        raise NotImplementedError

    async def list_without_employee(self) -> Sequence[User]:
        raise NotImplementedError
