"""Direct gift schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from poolift.models.enums import Occasion


class DirectGiftCreateRequest(BaseModel):
    recipient_name: str
    occasion: Occasion
    organizer_name: str
    gift_idea: Optional[str] = None
    estimated_price: Optional[float] = None


class DirectGiftResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    recipient_name: str
    occasion: str
    gift_idea: Optional[str]
    estimated_price: Optional[float]
    organizer_name: str
    organizer_user_id: Optional[str]
    share_code: str
    status: str
    final_price: Optional[float]
    organizer_comment: Optional[str]
    purchased_at: Optional[datetime]
    created_at: datetime


class DirectGiftParticipantResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    participant_name: str
    joined_at: datetime


class DirectGiftDetailResponse(DirectGiftResponse):
    participants: list[DirectGiftParticipantResponse]


class DirectGiftParticipantRequest(BaseModel):
    participant_name: str


class FinalizeDirectGiftRequest(BaseModel):
    final_price: Optional[float] = None
    organizer_comment: Optional[str] = None


class FinalizeDirectGiftResponse(BaseModel):
    gift: DirectGiftResponse
    participant_count: int
    price_per_participant: float
