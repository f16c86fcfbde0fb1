"""
geolocation.py — Current-position acquisition for crisis alerts.

Wraps a callback-style geolocation capability

    get_current_position(on_success, on_error, options)

in a single awaitable that settles exactly once. Platform error codes are
translated into the closed LocationErrorKind set; the resolver never
retries and never invents a position (fallback is the orchestrator's job).

═══════════════════════════════════════════════════════════════════════════
ERROR CODES
═══════════════════════════════════════════════════════════════════════════

    Code   Kind                   Reason shown
    ────   ────────────────────   ─────────────────────────────────────────
    1      PERMISSION_DENIED      Please enable location permissions ...
    2      POSITION_UNAVAILABLE   Location information is unavailable.
    3      TIMEOUT                Location request timed out.
    —      UNSUPPORTED            Geolocation is not supported ...
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from backend.app.crisis.models import Coordinates

logger = logging.getLogger(__name__)


class LocationErrorKind(str, Enum):
    PERMISSION_DENIED    = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT              = "timeout"
    UNSUPPORTED          = "unsupported"


# Platform codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

_KIND_BY_CODE = {
    PERMISSION_DENIED: LocationErrorKind.PERMISSION_DENIED,
    POSITION_UNAVAILABLE: LocationErrorKind.POSITION_UNAVAILABLE,
    TIMEOUT: LocationErrorKind.TIMEOUT,
}

_REASONS = {
    LocationErrorKind.PERMISSION_DENIED: "Please enable location permissions to use this feature.",
    LocationErrorKind.POSITION_UNAVAILABLE: "Location information is unavailable.",
    LocationErrorKind.TIMEOUT: "Location request timed out.",
    LocationErrorKind.UNSUPPORTED: "Geolocation is not supported by your browser",
}

UNKNOWN_REASON = "Unable to get your location."


class LocationError(Exception):
    """Location acquisition failed; ``kind`` says why."""

    def __init__(self, kind: Optional[LocationErrorKind], reason: Optional[str] = None):
        self.kind = kind
        self.reason = reason or _REASONS.get(kind, UNKNOWN_REASON)
        super().__init__(self.reason)

    @classmethod
    def from_code(cls, code: int) -> "LocationError":
        return cls(_KIND_BY_CODE.get(code))


@dataclass(frozen=True)
class PositionOptions:
    """Acquisition options handed to the capability unchanged."""
    enable_high_accuracy: bool = True
    timeout_ms: int = 10_000
    maximum_age_ms: int = 0  # fresh fix only


@dataclass(frozen=True)
class GeoPosition:
    """A fix reported by the capability."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PositionError:
    """Error payload passed to the capability's error callback."""
    code: int
    message: str = ""


SuccessCallback = Callable[[GeoPosition], None]
ErrorCallback = Callable[[PositionError], None]


class GeolocationCapability(Protocol):
    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        ...


class ReportedPosition:
    """
    Capability backed by the fix a client device sent with its request.

    The device acquires the position itself (high accuracy, no cache);
    the server only relays it. Missing values report POSITION_UNAVAILABLE.
    """

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude

    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        if self.latitude is None or self.longitude is None:
            on_error(PositionError(POSITION_UNAVAILABLE, "No position reported"))
            return
        on_success(GeoPosition(self.latitude, self.longitude))


async def resolve_location(
    geolocation: Optional[GeolocationCapability],
    options: Optional[PositionOptions] = None,
) -> Coordinates:
    """
    Acquire the current position once.

    Raises
    ------
    LocationError
        On permission denial, unavailability, timeout, or when no
        capability is present.
    """
    options = options or PositionOptions()
    if geolocation is None:
        raise LocationError(LocationErrorKind.UNSUPPORTED)

    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(position: Optional[GeoPosition], error: Optional[LocationError]) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(position)

    def on_success(position: GeoPosition) -> None:
        loop.call_soon_threadsafe(_settle, position, None)

    def on_error(error: PositionError) -> None:
        loop.call_soon_threadsafe(_settle, None, LocationError.from_code(error.code))

    try:
        geolocation.get_current_position(on_success, on_error, options)
    except Exception as exc:
        logger.warning("Geolocation capability raised: %s", exc)
        raise LocationError(LocationErrorKind.POSITION_UNAVAILABLE) from exc

    try:
        position = await asyncio.wait_for(future, timeout=options.timeout_ms / 1000)
    except asyncio.TimeoutError:
        raise LocationError(LocationErrorKind.TIMEOUT) from None

    try:
        return Coordinates(position.latitude, position.longitude)
    except ValueError as exc:
        raise LocationError(LocationErrorKind.POSITION_UNAVAILABLE) from exc
