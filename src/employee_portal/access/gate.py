from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from ..core.enums import ErrorCode
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    VerificationRequiredError,
)
from ..loaders.loader_set import LoaderSet
from ..notifications.email_notifier import DeliveryOutcome
from ..users.model import Identity, User
from .policy import Decision, IdentityState, Policy, evaluate

logger = logging.getLogger(__name__)

OtpIssuer = Callable[[User], Awaitable[DeliveryOutcome]]


class AccessGate:
    """Per-request guard consulted before every protected operation.

    ``require`` resolves the caller's state (loading the user through the
    request's loaders), re-issues an OTP for unverified callers, then applies
    :func:`~employee_portal.access.policy.evaluate`.
    """

    def __init__(self, identity: Optional[Identity], loaders: LoaderSet, issue_otp: OtpIssuer):
        self._identity = identity
        self._loaders = loaders
        self._issue_otp = issue_otp

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    async def require(self, policy: Policy = Policy.VERIFIED, *, owner_id: Optional[str] = None) -> User:
        if self._identity is None:
            self._raise(evaluate(IdentityState.UNAUTHENTICATED, None, policy))

        user = await self._loaders.user_by_id.load(self._identity.user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not user.otp_verified:
            outcome = await self._issue_otp(user)
            if not outcome.delivered:
                logger.warning("gate could not deliver OTP to user %s: %s", user.id, outcome.error)
            self._raise(evaluate(IdentityState.UNVERIFIED, user.role, policy), email=user.email)

        self.authorize(user, policy, owner_id=owner_id)
        return user

    def authorize(self, actor: User, policy: Policy, *, owner_id: Optional[str] = None) -> None:
        """Role/ownership check for an already verified actor."""
        decision = evaluate(IdentityState.VERIFIED, actor.role, policy, actor_id=actor.id, owner_id=owner_id)
        if not decision.allowed:
            self._raise(decision)

    @staticmethod
    def _raise(decision: Decision, *, email: str = "") -> None:
        if decision.failure == ErrorCode.UNAUTHENTICATED:
            raise AuthenticationError(decision.reason)
        if decision.failure == ErrorCode.OTP_REQUIRED:
            raise VerificationRequiredError(decision.reason, email=email)
        raise AuthorizationError(decision.reason)
