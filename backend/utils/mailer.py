import asyncio
import logging

import resend

from config.env import RESEND_API_KEY, MAIL_SENDER, RESET_TOKEN_MINUTES

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def _send(payload: dict) -> None:
    api_key = (RESEND_API_KEY or "").strip()
    if not api_key:
        raise EmailDeliveryError("Resend API key is not configured")

    resend.api_key = api_key
    response = resend.Emails.send(payload)

    if not isinstance(response, dict) or not response.get("id"):
        raise EmailDeliveryError(f"Unexpected Resend response: {response!r}")


async def send_password_reset_email(recipient_email: str, reset_token: str) -> None:
    payload = {
        "from": MAIL_SENDER,
        "to": [recipient_email],
        "subject": "Password Reset",
        "text": (
            f"Your OTP: {reset_token}\n"
            f"It expires in {RESET_TOKEN_MINUTES} minutes."
        ),
    }
    try:
        await asyncio.to_thread(_send, payload)
    except EmailDeliveryError:
        raise
    except Exception as e:
        raise EmailDeliveryError(str(e)) from e

    logger.info("Password reset email sent to %s", recipient_email)
