"""
sms_gateway.py — SMS delivery channel via the messaging provider.

    App  →  HTTP POST  →  Twilio Messages API  →  Carrier  →  Handset

The recipient address is used as configured (E.164, e.g. +918788293663);
the sender is the account's SMS-capable phone number. The body is sent
as-is: the alert text is short and carries a maps link the provider
segments automatically if needed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from backend.app.crisis.messaging import MessageSender
from backend.app.crisis.models import AlertChannel, DeliveryAttempt, DeliveryStatus

logger = logging.getLogger(__name__)


async def send(
    sender: MessageSender,
    body: str,
    from_: str,
    recipient: str,
) -> DeliveryAttempt:
    """
    Send one SMS.

    Parameters
    ----------
    sender : MessageSender
        Provider client.
    body : str
        Message text.
    from_ : str
        Sender phone number.
    recipient : str
        Destination phone number (E.164).

    Returns
    -------
    DeliveryAttempt
    """
    attempt = DeliveryAttempt(
        channel=AlertChannel.SMS,
        recipient=recipient,
        status=DeliveryStatus.SENDING,
    )

    try:
        message = await sender.send(body=body, from_=from_, to=recipient)
        attempt.status = DeliveryStatus.DELIVERED
        attempt.message_id = message.sid
        logger.info(
            "[SMS] → %s accepted as %s", recipient, message.sid,
            extra={"channel": AlertChannel.SMS.value, "message_sid": message.sid},
        )
    except Exception as exc:
        logger.error("[SMS] Failed for %s: %s", recipient, exc)
        attempt.status = DeliveryStatus.FAILED
        attempt.error_message = str(exc)
        attempt.provider_message = getattr(exc, "provider_message", None)

    attempt.completed_at = datetime.now(timezone.utc)
    return attempt
