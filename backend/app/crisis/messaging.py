"""
messaging.py — Messaging provider client (Twilio Programmable Messaging).

    POST {base}/2010-04-01/Accounts/{AccountSid}/Messages.json
         Body=<text>&From=<sender>&To=<recipient>      (HTTP basic auth)

    201 → {"sid": "SM...", "status": "queued", "to": "...", ...}
    4xx → {"code": 21211, "message": "The 'To' number ... is not valid", ...}

SMS and WhatsApp go through the same endpoint; WhatsApp addresses carry
the "whatsapp:" prefix. Credentials come from AlertConfig only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from backend.app.core.config import AlertConfig
from backend.app.core.errors import MessagingProviderError

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/2010-04-01/Accounts/{account_sid}/Messages.json"


@dataclass(frozen=True)
class SentMessage:
    """Provider acknowledgement for one accepted message."""
    sid: str
    status: str = "queued"
    to: str = ""


class MessageSender(Protocol):
    async def send(self, *, body: str, from_: str, to: str) -> SentMessage:
        ...


class TwilioMessagingClient:
    """
    Async Twilio client over httpx.

    One instance per process; the underlying ``httpx.AsyncClient`` is
    created lazily and closed with ``close()``.
    """

    def __init__(
        self,
        config: AlertConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def messages_url(self) -> str:
        return self.config.api_base_url.rstrip("/") + MESSAGES_PATH.format(
            account_sid=self.config.account_sid,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                auth=(self.config.account_sid, self.config.auth_token),
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def send(self, *, body: str, from_: str, to: str) -> SentMessage:
        """
        Create one outbound message.

        Raises
        ------
        MessagingProviderError
            On a non-2xx response or a transport failure.
        """
        client = await self._get_client()

        try:
            response = await client.post(
                self.messages_url,
                data={"Body": body, "From": from_, "To": to},
            )
        except httpx.HTTPError as exc:
            logger.error("Twilio request to %s failed: %s", to, exc)
            raise MessagingProviderError(f"{type(exc).__name__}: {exc}") from exc

        if response.is_error:
            message, code = _provider_error(response)
            raise MessagingProviderError(
                message, status_code=response.status_code, provider_code=code,
            )

        data = response.json()
        sid = data.get("sid")
        if not sid:
            raise MessagingProviderError(
                "Response did not include a message sid",
                status_code=response.status_code,
            )
        return SentMessage(sid=sid, status=data.get("status", "queued"), to=data.get("to", to))


def _provider_error(response: httpx.Response):
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}", None
    return data.get("message") or f"HTTP {response.status_code}", data.get("code")
