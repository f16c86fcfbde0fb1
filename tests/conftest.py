"""Shared fixtures: a recording fake messaging provider and a wired app."""

from __future__ import annotations

import asyncio
import itertools
from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient

from backend.app.core.config import AlertConfig, Settings
from backend.app.core.errors import MessagingProviderError
from backend.app.crisis.alert_service import AlertDispatcher
from backend.app.crisis.messaging import SentMessage
from backend.app.crisis.orchestrator import CrisisOrchestrator

RECIPIENTS = ("+918788293663", "+919876543210", "+14155550123")
SMS_SENDER = "+17753681889"
WHATSAPP_SENDER = "whatsapp:+14155238886"


class FakeSender:
    """
    Records every send; fails sends whose ``to`` is in ``fail_for``.

    ``delay`` keeps each send pending long enough for the test to see
    how many were in flight at once.
    """

    def __init__(self, fail_for: Optional[Set[str]] = None, delay: float = 0.0):
        self.fail_for = set(fail_for or ())
        self.delay = delay
        self.calls: List[Dict[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._ids = itertools.count(1)

    async def send(self, *, body: str, from_: str, to: str) -> SentMessage:
        self.calls.append({"body": body, "from": from_, "to": to})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if to in self.fail_for:
                raise MessagingProviderError(
                    f"The 'To' number {to} is not a valid phone number.",
                    status_code=400, provider_code=21211,
                )
            return SentMessage(sid=f"SM{next(self._ids):04d}", to=to)
        finally:
            self.in_flight -= 1

    def sent_to(self) -> List[str]:
        return [c["to"] for c in self.calls]


def make_alert_config(recipients=RECIPIENTS, **overrides) -> AlertConfig:
    values = dict(
        account_sid="AC_test_sid",
        auth_token="test_token",
        sms_sender=SMS_SENDER,
        whatsapp_sender=WHATSAPP_SENDER,
        recipients=tuple(recipients),
    )
    values.update(overrides)
    return AlertConfig(**values)


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def alert_config() -> AlertConfig:
    return make_alert_config()


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def dispatcher(sender, alert_config) -> AlertDispatcher:
    return AlertDispatcher(sender, alert_config)


@pytest.fixture
def orchestrator(dispatcher) -> CrisisOrchestrator:
    return CrisisOrchestrator(dispatcher)


@pytest.fixture
def client(sender, alert_config):
    from backend.app.main import create_app

    app = create_app(make_settings(), alert_config=alert_config, sender=sender)
    with TestClient(app) as test_client:
        yield test_client
