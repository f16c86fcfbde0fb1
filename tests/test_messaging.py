"""
test_messaging.py — Twilio REST client over a mocked httpx transport.
"""

from __future__ import annotations

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from backend.app.core.errors import MessagingProviderError
from backend.app.crisis.messaging import TwilioMessagingClient

from tests.conftest import make_alert_config


def _client(handler) -> TwilioMessagingClient:
    config = make_alert_config(api_base_url="https://api.twilio.test/")
    return TwilioMessagingClient(config, transport=httpx.MockTransport(handler))


class TestTwilioMessagingClient:

    @pytest.mark.asyncio
    async def test_posts_form_with_basic_auth(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["method"] = request.method
            seen["auth"] = request.headers["authorization"]
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(201, json={"sid": "SM123", "status": "queued", "to": "+911"})

        client = _client(handler)
        message = await client.send(body="help", from_="+1775", to="+911")
        await client.close()

        assert message.sid == "SM123"
        assert message.status == "queued"
        assert seen["method"] == "POST"
        assert seen["url"] == (
            "https://api.twilio.test/2010-04-01/Accounts/AC_test_sid/Messages.json"
        )
        expected = base64.b64encode(b"AC_test_sid:test_token").decode()
        assert seen["auth"] == f"Basic {expected}"
        assert seen["form"] == {"Body": ["help"], "From": ["+1775"], "To": ["+911"]}

    @pytest.mark.asyncio
    async def test_provider_error_message_surfaces(self):
        def handler(request):
            return httpx.Response(400, json={
                "code": 21211,
                "message": "The 'To' number +000 is not a valid phone number.",
                "status": 400,
            })

        client = _client(handler)
        with pytest.raises(MessagingProviderError) as info:
            await client.send(body="help", from_="+1775", to="+000")
        await client.close()

        assert info.value.provider_message == "The 'To' number +000 is not a valid phone number."
        assert info.value.provider_code == 21211
        assert info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        client = _client(lambda request: httpx.Response(503, text="upstream down"))
        with pytest.raises(MessagingProviderError) as info:
            await client.send(body="help", from_="+1775", to="+911")
        await client.close()
        assert info.value.provider_message == "HTTP 503"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(MessagingProviderError) as info:
            await client.send(body="help", from_="+1775", to="+911")
        await client.close()
        assert "ConnectError" in info.value.provider_message

    @pytest.mark.asyncio
    async def test_missing_sid(self):
        client = _client(lambda request: httpx.Response(201, json={"status": "queued"}))
        with pytest.raises(MessagingProviderError):
            await client.send(body="help", from_="+1775", to="+911")
        await client.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = _client(lambda request: httpx.Response(201, json={"sid": "SM1"}))
        await client.send(body="x", from_="+1", to="+2")
        await client.close()
        await client.close()
