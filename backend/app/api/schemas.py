"""
Pydantic schemas for the crisis API.

Fields the handlers require are declared Optional so that a missing
value is reported as the API's own 400 "Missing required fields"
rather than a framework validation error.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CrisisAlertRequest(BaseModel):
    """Request body for POST /api/crisis-alert."""
    username: Optional[str] = Field(None, examples=["asha_user"])
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0, examples=[21.082225])
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0, examples=[80.006333])

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.username:
            missing.append("username")
        if self.latitude is None:
            missing.append("latitude")
        if self.longitude is None:
            missing.append("longitude")
        return missing


class ChatMessageRequest(BaseModel):
    """
    Request body for POST /api/crisis/message.

    ``latitude``/``longitude`` are the device's own fresh fix, when the
    user granted location access.
    """
    username: Optional[str] = Field(None, examples=["asha_user"])
    text: Optional[str] = Field(None, examples=["I can't do this anymore"])
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.username:
            missing.append("username")
        if self.text is None:
            missing.append("text")
        return missing


class EmergencyRequest(BaseModel):
    """Request body for POST /api/emergency."""
    name: Optional[str] = Field(None, examples=["Asha"])
    phone: Optional[str] = Field(None, examples=["+918788293663"])
    situation: Optional[str] = Field(None, examples=["Panic attack, alone at home"])

    def missing_fields(self) -> List[str]:
        return [f for f in ("name", "phone", "situation") if not getattr(self, f)]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class CrisisAlertResponse(BaseModel):
    success: bool = True
    message: str = "Crisis alerts sent successfully"
    smsMessageIds: List[str] = Field(default_factory=list)
    whatsappMessageIds: List[str] = Field(default_factory=list)


class EmergencyResponse(BaseModel):
    success: bool = True
    smsMessageIds: List[str] = Field(default_factory=list)
    whatsappMessageIds: List[str] = Field(default_factory=list)


class ChatMessageResponse(BaseModel):
    crisis: bool
    success: Optional[bool] = None
    message: Optional[str] = None
