"""
models.py — Shared data structures for the crisis alert pipeline.

Defines:
    • AlertChannel   — SMS / WhatsApp
    • DeliveryStatus — per-send delivery tracking
    • CrisisState    — orchestrator state machine
    • Coordinates    — a validated lat/lng pair
    • AlertRequest   — one triggered alert
    • DeliveryAttempt — single send record
    • DispatchResult  — outcome of a fan-out
    • AlertOutcome    — the only user-visible artifact

═══════════════════════════════════════════════════════════════════════════
MESSAGE FORMAT
═══════════════════════════════════════════════════════════════════════════

    "Your Friend needs help reach out to them asap. Location:
     https://maps.google.com/?q=<lat>,<lng>"

Coordinates are inserted verbatim (shortest float repr, no escaping).
Every failure the user can see collapses to SAFE_ALERT_TEXT, which
carries neither coordinates nor provider detail.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

SAFE_ALERT_TEXT = "Your Friend needs help reach out to them asap"
MAPS_URL = "https://maps.google.com/?q={lat},{lng}"
WHATSAPP_PREFIX = "whatsapp:"


# ═══════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════

class AlertChannel(str, Enum):
    """Outbound notification channels, one send per recipient each."""
    SMS      = "sms"
    WHATSAPP = "whatsapp"


class DeliveryStatus(str, Enum):
    """Delivery state per recipient per channel."""
    SENDING   = "sending"     # request in flight
    DELIVERED = "delivered"   # provider accepted the message
    FAILED    = "failed"      # provider rejected or unreachable


class CrisisState(str, Enum):
    """Orchestrator states."""
    LOCATING          = "locating"
    FALLBACK_LOCATING = "fallback_locating"
    DISPATCHING       = "dispatching"
    DONE              = "done"


# ═══════════════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════════════

def format_coordinate(value: float) -> str:
    """Render a coordinate the way it was received: 21.5 → '21.5', 10.0 → '10'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def maps_link(latitude: float, longitude: float) -> str:
    return MAPS_URL.format(
        lat=format_coordinate(latitude),
        lng=format_coordinate(longitude),
    )


def compose_alert_message(latitude: float, longitude: float) -> str:
    """The emergency text sent to every recipient and echoed on success."""
    return f"{SAFE_ALERT_TEXT}. Location: {maps_link(latitude, longitude)}"


def compose_emergency_details(name: str, phone: str, situation: str) -> str:
    """Text for a manually reported emergency (no location)."""
    return (
        f"{SAFE_ALERT_TEXT}. Details:\n"
        f"Name: {name}\n"
        f"Phone: {phone}\n"
        f"Situation: {situation}"
    )


def whatsapp_address(address: str) -> str:
    """Apply the chat-messaging protocol prefix exactly once."""
    if address.startswith(WHATSAPP_PREFIX):
        return address
    return f"{WHATSAPP_PREFIX}{address}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Coordinates:
    """A geographic point in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class AlertRequest:
    """A single triggered alert: who needs help and where."""
    requester_id: str
    latitude: float
    longitude: float

    @classmethod
    def at(cls, requester_id: str, coords: Coordinates) -> "AlertRequest":
        return cls(requester_id, coords.latitude, coords.longitude)

    @property
    def message(self) -> str:
        return compose_alert_message(self.latitude, self.longitude)


@dataclass
class DeliveryAttempt:
    """Record of one send to one recipient via one channel."""
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    channel: AlertChannel = AlertChannel.SMS
    recipient: str = ""
    status: DeliveryStatus = DeliveryStatus.SENDING
    message_id: Optional[str] = None
    error_message: Optional[str] = None   # server-side detail, names the recipient
    provider_message: Optional[str] = None  # provider's own text, if it answered
    attempted_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None

    @property
    def delivered(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED


@dataclass
class DispatchResult:
    """
    Result of fanning one message out over both channels.

    On success both id lists are in recipient order. On failure ``error``
    holds the first failure's description (issue order), which names the
    recipient and stays server-side; ``client_error`` is the redacted text
    an HTTP caller may see.
    """
    success: bool
    sms_message_ids: List[str] = field(default_factory=list)
    whatsapp_message_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None
    client_error: Optional[str] = None
    attempts: List[DeliveryAttempt] = field(default_factory=list)

    @classmethod
    def failed(
        cls,
        error: str,
        attempts: Optional[List[DeliveryAttempt]] = None,
        client_error: Optional[str] = None,
    ) -> "DispatchResult":
        return cls(
            success=False,
            error=error,
            client_error=client_error,
            attempts=list(attempts or []),
        )

    @property
    def delivered_count(self) -> int:
        return sum(1 for a in self.attempts if a.delivered)


@dataclass(frozen=True)
class AlertOutcome:
    """What the caller (chat UI) shows the user. Always well-formed."""
    success: bool
    message: str

    @classmethod
    def safe_failure(cls) -> "AlertOutcome":
        return cls(success=False, message=SAFE_ALERT_TEXT)


@dataclass
class CrisisRun:
    """Per-invocation trace of the orchestrator."""
    requester_id: str
    states: List[CrisisState] = field(default_factory=list)
    coordinates: Optional[Coordinates] = None
    location_error: Optional[str] = None
    dispatch_result: Optional[DispatchResult] = None
    outcome: AlertOutcome = field(default_factory=AlertOutcome.safe_failure)

    @property
    def used_fallback(self) -> bool:
        return CrisisState.FALLBACK_LOCATING in self.states

    def enter(self, state: CrisisState) -> None:
        self.states.append(state)

    @property
    def state_path(self) -> Tuple[str, ...]:
        return tuple(s.value for s in self.states)
