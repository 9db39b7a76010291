from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import utc_now
from ..common.validators import FieldErrors, check_email, check_password
from ..core.constants import DEFAULT_OTP_TTL_MINUTES, OTP_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    ConflictError,
    InvalidOtpError,
    NotFoundError,
    OtpExpiredError,
    ValidationError,
)
from ..notifications.email_notifier import DeliveryOutcome, Notifier
from .model import User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Payload returned by every auth use case."""

    success: bool
    message: str
    email: Optional[str] = None
    requires_otp_verification: bool = False
    token: Optional[str] = None
    user: Optional[User] = None


def generate_otp() -> str:
    low = 10 ** (OTP_LENGTH - 1)
    return str(low + secrets.randbelow(9 * low))


class AuthService:
    """Use cases: register, login, OTP issue/verify."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        notifier: Notifier,
        *,
        otp_ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._users = users
        self._tokens = tokens
        self._notifier = notifier
        self._otp_ttl = timedelta(minutes=int(otp_ttl_minutes))
        self._clock = clock

    def _new_otp(self) -> tuple[str, str, datetime]:
        code = generate_otp()
        return code, generate_password_hash(code), self._clock() + self._otp_ttl

    async def _deliver(self, email: str, code: str) -> DeliveryOutcome:
        outcome = await self._notifier.send(email, code)
        if not outcome.delivered:
            logger.warning("OTP delivery to %s failed: %s", email, outcome.error)
        return outcome

    async def issue_otp(self, user: User) -> DeliveryOutcome:
        """Store a fresh code for ``user`` and try to mail it (never raises on delivery)."""
        code, code_hash, expires = self._new_otp()
        await self._users.set_otp(user.id, otp_hash=code_hash, otp_expires=expires)
        logger.info("issued OTP for user %s", user.id)
        return await self._deliver(user.email, code)

    async def register(self, *, email: Any, password: Any, role: Any = Role.EMPLOYEE) -> AuthResult:
        errors = FieldErrors()
        email = check_email(errors, email)
        check_password(errors, password)
        try:
            role = Role(role if role is not None else Role.EMPLOYEE)
        except ValueError:
            errors.add("role", "Role must be ADMIN or EMPLOYEE")
        errors.raise_if_any()

        existing = await self._users.get_by_email(email)
        if existing:
            if existing.otp_verified:
                raise ConflictError("User with this email already exists")
            await self.issue_otp(existing)
            return AuthResult(
                success=True,
                message="Account exists but is not verified. A new OTP has been sent to your email.",
                email=email,
                requires_otp_verification=True,
            )

        code, code_hash, expires = self._new_otp()
        user = await self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            otp_hash=code_hash,
            otp_expires=expires,
        )
        logger.info("registered user %s (%s)", user.id, role.value)

        outcome = await self._deliver(email, code)
        message = (
            "Registration successful! Please verify your email with the OTP sent to your inbox."
            if outcome.delivered
            else "Registration successful, but the verification email could not be sent. Please request a new OTP."
        )
        return AuthResult(success=True, message=message, email=email, requires_otp_verification=True)

    async def login(self, *, email: Any, password: Any) -> AuthResult:
        errors = FieldErrors()
        email = check_email(errors, email)
        errors.check(isinstance(password, str) and bool(password), "password", "Password is required")
        errors.raise_if_any()

        user = await self._users.get_by_email(email)
        if not user:
            raise ValidationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False
        if not ok:
            raise ValidationError("Invalid email or password")

        if not user.otp_verified:
            await self.issue_otp(user)
            return AuthResult(
                success=False,
                message="Email not verified. A new OTP has been sent to your email.",
                email=email,
                requires_otp_verification=True,
            )

        return AuthResult(success=True, message="Login successful!", token=self._tokens.issue(user), user=user)

    async def send_otp(self, *, email: Any, resend: bool = False) -> AuthResult:
        errors = FieldErrors()
        email = check_email(errors, email)
        errors.raise_if_any()

        user = await self._users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found with this email")
        if user.otp_verified:
            return AuthResult(success=True, message="Email is already verified", email=email)

        outcome = await self.issue_otp(user)
        if not outcome.delivered:
            return AuthResult(
                success=False,
                message="Failed to send OTP email. Please try again.",
                email=email,
                requires_otp_verification=True,
            )
        message = "New OTP sent successfully to your email" if resend else "OTP sent successfully to your email"
        return AuthResult(success=True, message=message, email=email, requires_otp_verification=True)

    async def verify_otp(self, *, email: Any, otp: Any) -> AuthResult:
        errors = FieldErrors()
        email = check_email(errors, email)
        errors.check(isinstance(otp, str) and otp.strip().isdigit(), "otp", "OTP must be numeric")
        errors.raise_if_any()

        user = await self._users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        if user.otp_verified:
            return AuthResult(
                success=True,
                message="Email is already verified",
                token=self._tokens.issue(user),
                user=user,
            )

        if not user.otp_hash or not user.otp_expires:
            raise ValidationError("No OTP found. Please request a new OTP.")
        if self._clock() >= user.otp_expires:
            raise OtpExpiredError("OTP has expired. Please request a new OTP.")
        if not check_password_hash(user.otp_hash, otp.strip()):
            raise InvalidOtpError("Invalid OTP. Please try again.")

        await self._users.mark_verified(user.id)
        verified = await self._users.get_by_id(user.id)
        if verified is None:
            raise NotFoundError("User not found")
        logger.info("user %s verified email", user.id)

        return AuthResult(
            success=True,
            message="Email verified successfully! You are now logged in.",
            token=self._tokens.issue(verified),
            user=verified,
        )
