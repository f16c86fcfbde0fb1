"""
alert_service.py — Emergency alert fan-out.

Sends one message to every configured recipient over both channels:

    recipients = [A, B, C]

        SMS(A)  SMS(B)  SMS(C)  WA(A)  WA(B)  WA(C)     ← all started at once
           │       │       │      │      │      │
           └───────┴───────┴──┬───┴──────┴──────┘
                              ▼
                     join (every send settled)
                              │
              all delivered? ─┴─ any failed?
                   │                  │
          ids per channel,     first failure in issue
          recipient order      order → failed result

═══════════════════════════════════════════════════════════════════════════
DELIVERY CONTRACT
═══════════════════════════════════════════════════════════════════════════

    • 2 × len(recipients) sends per call, no ordering between them
    • The call returns only after every send has settled
    • Any single failure fails the whole dispatch; sends that already
      went out stay delivered (no rollback, no per-recipient retry)
    • Not idempotent: calling again re-sends to everyone
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from backend.app.core.config import AlertConfig
from backend.app.core.logging_config import mask_phone_numbers
from backend.app.crisis.channels import sms_gateway, whatsapp
from backend.app.crisis.messaging import MessageSender
from backend.app.crisis.models import (
    AlertChannel,
    AlertRequest,
    DeliveryAttempt,
    DispatchResult,
)

logger = logging.getLogger(__name__)

NO_RECIPIENTS_ERROR = "No emergency recipients configured"
DELIVERY_FAILED_ERROR = "Message delivery failed"


def _describe_failure(attempt: DeliveryAttempt) -> str:
    return f"{attempt.channel.value} to {attempt.recipient} failed: {attempt.error_message}"


def _client_error(attempt: DeliveryAttempt) -> str:
    """Provider text for the caller, with any phone number masked."""
    return mask_phone_numbers(attempt.provider_message or DELIVERY_FAILED_ERROR)


class AlertDispatcher:
    """
    Fans alert messages out over SMS and WhatsApp.

    Parameters
    ----------
    sender : MessageSender
        Provider client shared by both channels.
    config : AlertConfig
        Sender addresses and the default recipient list.
    """

    def __init__(self, sender: MessageSender, config: AlertConfig):
        self.sender = sender
        self.config = config

    async def dispatch(
        self,
        request: AlertRequest,
        recipients: Optional[Sequence[str]] = None,
    ) -> DispatchResult:
        """Send the location-bearing alert for ``request``."""
        logger.info(
            "Dispatching crisis alert for %s at (%s, %s)",
            request.requester_id, request.latitude, request.longitude,
            extra={"requester": request.requester_id, "lat": request.latitude, "lon": request.longitude},
        )
        return await self.dispatch_message(request.message, recipients)

    async def dispatch_message(
        self,
        body: str,
        recipients: Optional[Sequence[str]] = None,
    ) -> DispatchResult:
        """Send ``body`` to every recipient on both channels and join."""
        targets: List[str] = list(self.config.recipients if recipients is None else recipients)
        if not targets:
            logger.error(NO_RECIPIENTS_ERROR)
            return DispatchResult.failed(NO_RECIPIENTS_ERROR, client_error=NO_RECIPIENTS_ERROR)

        started = time.perf_counter()
        sends = [
            sms_gateway.send(self.sender, body, self.config.sms_sender, to)
            for to in targets
        ] + [
            whatsapp.send(self.sender, body, self.config.whatsapp_sender, to)
            for to in targets
        ]
        attempts: List[DeliveryAttempt] = list(await asyncio.gather(*sends))
        duration_ms = (time.perf_counter() - started) * 1000

        failures = [a for a in attempts if not a.delivered]
        if failures:
            error = _describe_failure(failures[0])
            logger.error(
                "Crisis alert dispatch failed: %d/%d sends delivered; first error: %s",
                len(attempts) - len(failures), len(attempts), error,
                extra={"recipient_count": len(targets), "duration_ms": duration_ms},
            )
            return DispatchResult.failed(
                error, attempts, client_error=_client_error(failures[0]),
            )

        sms_ids = [a.message_id for a in attempts if a.channel == AlertChannel.SMS]
        wa_ids = [a.message_id for a in attempts if a.channel == AlertChannel.WHATSAPP]

        logger.info(
            "Crisis alert delivered: %d SMS, %d WhatsApp (%.1fms)",
            len(sms_ids), len(wa_ids), duration_ms,
            extra={"recipient_count": len(targets), "duration_ms": duration_ms},
        )
        return DispatchResult(
            success=True,
            sms_message_ids=sms_ids,
            whatsapp_message_ids=wa_ids,
            attempts=attempts,
        )
