"""
FastAPI routes: crisis alerting.

Provides endpoints to:
    POST /api/crisis-alert     — send the location alert to all recipients
    POST /api/crisis/message   — classify a chat message, alert on crisis
    POST /api/emergency        — send a manually reported emergency
    GET  /api/health           — liveness summary
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from backend.app.api.schemas import (
    ChatMessageRequest,
    ChatMessageResponse,
    CrisisAlertRequest,
    CrisisAlertResponse,
    EmergencyRequest,
    EmergencyResponse,
)
from backend.app.core.errors import (
    AlertDispatchError,
    ConfigurationError,
    MissingFieldsError,
)
from backend.app.core.logging_config import bind_crisis_context
from backend.app.crisis.alert_service import DELIVERY_FAILED_ERROR, AlertDispatcher
from backend.app.crisis.classifier import is_crisis, matched_phrases
from backend.app.crisis.geolocation import ReportedPosition
from backend.app.crisis.models import AlertRequest, compose_emergency_details
from backend.app.crisis.orchestrator import CrisisOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["crisis"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_dispatcher(request: Request) -> AlertDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise ConfigurationError("Alert pipeline is not initialised")
    return dispatcher


def get_orchestrator(request: Request) -> CrisisOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise ConfigurationError("Alert pipeline is not initialised")
    return orchestrator


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/crisis-alert", response_model=CrisisAlertResponse)
async def crisis_alert(
    body: CrisisAlertRequest,
    dispatcher: AlertDispatcher = Depends(get_dispatcher),
):
    """Send the emergency SMS + WhatsApp alert with the caller's location."""
    logger.info(
        "Received crisis alert request: username=%s lat=%s lon=%s",
        body.username, body.latitude, body.longitude,
    )
    missing = body.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    result = await dispatcher.dispatch(
        AlertRequest(body.username, body.latitude, body.longitude),
    )
    if not result.success:
        raise AlertDispatchError(
            result.client_error or DELIVERY_FAILED_ERROR, result=result,
        )

    return CrisisAlertResponse(
        smsMessageIds=result.sms_message_ids,
        whatsappMessageIds=result.whatsapp_message_ids,
    )


@router.post(
    "/crisis/message",
    response_model=ChatMessageResponse,
    response_model_exclude_none=True,
)
async def crisis_message(
    body: ChatMessageRequest,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
):
    """
    Check a chat message for crisis language and, if found, alert the
    user's emergency contacts. Dispatch failures are reported in the
    outcome, never as an HTTP error.
    """
    missing = body.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    if not is_crisis(body.text):
        return ChatMessageResponse(crisis=False)

    bind_crisis_context(requester=body.username)
    logger.warning(
        "Crisis language from %s: %s", body.username, matched_phrases(body.text),
    )
    outcome = await orchestrator.handle_crisis_situation(
        body.username,
        ReportedPosition(body.latitude, body.longitude),
    )
    return ChatMessageResponse(
        crisis=True, success=outcome.success, message=outcome.message,
    )


@router.post("/emergency", response_model=EmergencyResponse)
async def emergency(
    body: EmergencyRequest,
    dispatcher: AlertDispatcher = Depends(get_dispatcher),
):
    """Relay a manually reported emergency to all recipients."""
    missing = body.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    result = await dispatcher.dispatch_message(
        compose_emergency_details(body.name, body.phone, body.situation),
    )
    if not result.success:
        raise AlertDispatchError(
            None,
            message="Failed to send emergency notifications",
            result=result,
        )

    return EmergencyResponse(
        smsMessageIds=result.sms_message_ids,
        whatsappMessageIds=result.whatsapp_message_ids,
    )


@router.get("/health", tags=["health"])
async def health(request: Request):
    cfg = request.app.state.settings
    return {
        "success": True,
        "status": "ok",
        "environment": cfg.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
