"""Outbound OTP email delivery.

Delivery is best-effort: ``send`` never raises, it returns a ``DeliveryOutcome``
that the caller logs or surfaces in its payload.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from ..core.constants import DEFAULT_OTP_TTL_MINUTES
from ..core.exceptions import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryOutcome:
    delivered: bool
    error: Optional[str] = None


class Notifier(Protocol):
    async def send(self, email: str, code: str) -> DeliveryOutcome:
        raise NotImplementedError


def render_otp_html(code: str, ttl_minutes: int) -> str:
    return (
        "<div style=\"font-family: Segoe UI, Tahoma, sans-serif; max-width: 600px; margin: 0 auto;\">"
        "<h2>Email Verification</h2>"
        "<p>Use this code to verify your email address:</p>"
        f"<p style=\"font-size: 32px; font-weight: 700; letter-spacing: 8px;\">{code}</p>"
        f"<p>This code expires in <strong>{ttl_minutes} minutes</strong>.</p>"
        "<p>If you didn't request this code, please ignore this email.</p>"
        "</div>"
    )


class BrevoEmailNotifier:
    """Sends OTP codes through Brevo's transactional email API."""

    def __init__(
        self,
        *,
        api_key: str,
        sender_email: str,
        sender_name: str = "Employee Portal",
        ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
    ):
        self._api_key = api_key
        self._sender = {"name": sender_name, "email": sender_email}
        self._ttl_minutes = int(ttl_minutes)

    def _send_sync(self, email: str, code: str) -> None:
        if not self._api_key or not self._sender["email"]:
            raise DeliveryError("Email delivery is not configured")

        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key["api-key"] = self._api_key
        api_instance = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))

        message = sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": email}],
            sender=self._sender,
            subject="Your Email Verification Code",
            html_content=render_otp_html(code, self._ttl_minutes),
            text_content=(
                f"Your Email Verification Code: {code}\n\n"
                f"This code expires in {self._ttl_minutes} minutes.\n\n"
                "If you didn't request this code, please ignore this email."
            ),
        )
        api_instance.send_transac_email(message)

    async def send(self, email: str, code: str) -> DeliveryOutcome:
        try:
            # the SDK is blocking; keep it off the event loop
            await asyncio.to_thread(self._send_sync, email, code)
        except ApiException as e:
            logger.error("OTP email to %s rejected by Brevo (status=%s): %s", email, e.status, e.reason)
            return DeliveryOutcome(delivered=False, error=f"Brevo API error {e.status}")
        except DeliveryError as e:
            logger.error("OTP email to %s not sent: %s", email, e.message)
            return DeliveryOutcome(delivered=False, error=e.message)
        except Exception as e:
            logger.exception("OTP email to %s failed", email)
            return DeliveryOutcome(delivered=False, error=str(e) or e.__class__.__name__)

        logger.info("OTP email sent to %s", email)
        return DeliveryOutcome(delivered=True)


class ConsoleNotifier:
    """Development notifier: writes the code to the log instead of mailing it."""

    async def send(self, email: str, code: str) -> DeliveryOutcome:
        logger.warning("[dev] OTP for %s is %s", email, code)
        return DeliveryOutcome(delivered=True)


def build_notifier(settings) -> Notifier:
    backend = str(getattr(settings, "EMAIL_BACKEND", "console")).lower()
    if backend == "brevo":
        return BrevoEmailNotifier(
            api_key=getattr(settings, "BREVO_API_KEY", ""),
            sender_email=getattr(settings, "EMAIL_FROM", ""),
            sender_name=getattr(settings, "EMAIL_FROM_NAME", "Employee Portal"),
            ttl_minutes=int(getattr(settings, "OTP_TTL_MINUTES", DEFAULT_OTP_TTL_MINUTES)),
        )
    return ConsoleNotifier()
