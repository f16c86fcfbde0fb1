"""
whatsapp.py — WhatsApp delivery channel via the messaging provider.

Same endpoint as SMS; both addresses carry the "whatsapp:" prefix
(e.g. from "whatsapp:+14155238886" to "whatsapp:+918788293663").
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from backend.app.crisis.messaging import MessageSender
from backend.app.crisis.models import (
    AlertChannel,
    DeliveryAttempt,
    DeliveryStatus,
    whatsapp_address,
)

logger = logging.getLogger(__name__)


async def send(
    sender: MessageSender,
    body: str,
    from_: str,
    recipient: str,
) -> DeliveryAttempt:
    """Send one WhatsApp message to the recipient's phone number."""
    to = whatsapp_address(recipient)
    attempt = DeliveryAttempt(
        channel=AlertChannel.WHATSAPP,
        recipient=recipient,
        status=DeliveryStatus.SENDING,
    )

    try:
        message = await sender.send(body=body, from_=whatsapp_address(from_), to=to)
        attempt.status = DeliveryStatus.DELIVERED
        attempt.message_id = message.sid
        logger.info(
            "[WHATSAPP] → %s accepted as %s", to, message.sid,
            extra={"channel": AlertChannel.WHATSAPP.value, "message_sid": message.sid},
        )
    except Exception as exc:
        logger.error("[WHATSAPP] Failed for %s: %s", to, exc)
        attempt.status = DeliveryStatus.FAILED
        attempt.error_message = str(exc)
        attempt.provider_message = getattr(exc, "provider_message", None)

    attempt.completed_at = datetime.now(timezone.utc)
    return attempt
