"""
orchestrator.py — Locate, then dispatch; always answer.

    LOCATING ──ok──────────────────────────► DISPATCHING ──► DONE
        │                                        ▲
        └─fail─► FALLBACK_LOCATING ──────────────┘
                 (fixed fallback coordinate)

    DONE(success) → message = alert text with maps link
    DONE(failure) → message = SAFE_ALERT_TEXT (no coordinates, no provider detail)

This is the only place where exceptions from the pipeline are turned into
an AlertOutcome; nothing below it is allowed to reach the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.app.core.config import AlertConfig
from backend.app.core.logging_config import bind_crisis_context
from backend.app.crisis.alert_service import AlertDispatcher
from backend.app.crisis.geolocation import (
    GeolocationCapability,
    PositionOptions,
    resolve_location,
)
from backend.app.crisis.models import (
    AlertOutcome,
    AlertRequest,
    Coordinates,
    CrisisRun,
    CrisisState,
    DispatchResult,
)

logger = logging.getLogger(__name__)

FALLBACK_COORDINATES = Coordinates(21.082225, 80.006333)


class CrisisOrchestrator:
    """Runs one crisis alert per call; holds no per-call state."""

    def __init__(
        self,
        dispatcher: AlertDispatcher,
        *,
        fallback: Coordinates = FALLBACK_COORDINATES,
        location_options: Optional[PositionOptions] = None,
    ):
        self.dispatcher = dispatcher
        self.fallback = fallback
        self.location_options = location_options or PositionOptions()

    @classmethod
    def from_config(cls, dispatcher: AlertDispatcher, config: AlertConfig) -> "CrisisOrchestrator":
        return cls(
            dispatcher,
            fallback=Coordinates(config.fallback_latitude, config.fallback_longitude),
            location_options=PositionOptions(timeout_ms=config.geolocation_timeout_ms),
        )

    async def handle_crisis_situation(
        self,
        requester_id: str,
        geolocation: Optional[GeolocationCapability] = None,
    ) -> AlertOutcome:
        run = await self.run(requester_id, geolocation)
        return run.outcome

    async def run(
        self,
        requester_id: str,
        geolocation: Optional[GeolocationCapability] = None,
    ) -> CrisisRun:
        run = CrisisRun(requester_id=requester_id)
        bind_crisis_context(requester=requester_id)

        # ── LOCATING ──
        _enter(run, CrisisState.LOCATING)
        try:
            run.coordinates = await resolve_location(geolocation, self.location_options)
        except Exception as exc:
            # ── FALLBACK_LOCATING ──
            _enter(run, CrisisState.FALLBACK_LOCATING)
            run.location_error = str(exc)
            run.coordinates = self.fallback
            logger.warning(
                "Location unavailable for %s (%s); using fallback %s",
                requester_id, exc, self.fallback,
            )

        # ── DISPATCHING ──
        _enter(run, CrisisState.DISPATCHING)
        request = AlertRequest.at(requester_id, run.coordinates)
        try:
            result = await self.dispatcher.dispatch(request)
        except Exception as exc:
            logger.exception("Crisis alert dispatch raised for %s", requester_id)
            result = DispatchResult.failed(str(exc))
        run.dispatch_result = result

        # ── DONE ──
        _enter(run, CrisisState.DONE)
        if result.success:
            run.outcome = AlertOutcome(success=True, message=request.message)
        else:
            run.outcome = AlertOutcome.safe_failure()

        logger.info(
            "Crisis handling for %s finished: success=%s path=%s",
            requester_id, run.outcome.success, "→".join(run.state_path),
        )
        return run


def _enter(run: CrisisRun, state: CrisisState) -> None:
    run.enter(state)
    bind_crisis_context(state=state.value)
