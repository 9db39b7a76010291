"""Bearer token issuing and the authentication oracle."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.enums import Role
from .model import Identity, User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenService:
    def __init__(self, secret: str, *, expires_days: int = DEFAULT_TOKEN_DAYS):
        self._secret = secret
        self._expires = timedelta(days=int(expires_days))

    def issue(self, user: User) -> str:
        payload = {
            "userId": user.id,
            "role": user.role.value,
            "exp": datetime.now(timezone.utc) + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def identity_from_header(self, header: Optional[str]) -> Optional[Identity]:
        """Resolve ``Authorization`` header content to an identity.

        Never raises: a missing, malformed, expired or forged token is ``None``.
        """
        if not header:
            return None
        token = header[7:] if header.startswith("Bearer ") else header
        try:
            claims = jwt.decode(token.strip(), self._secret, algorithms=[ALGORITHM])
            return Identity(user_id=str(claims["userId"]), role=Role(claims["role"]))
        except (JWTError, KeyError, ValueError) as e:
            logger.debug("rejected bearer token: %s", e)
            return None
