"""Group gift schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GiftCreateRequest(BaseModel):
    party_id: str
    proposal_id: Optional[str] = None


class ParticipantRequest(BaseModel):
    family_name: str


class ParticipantResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    gift_id: str
    family_name: str
    joined_at: datetime


class GiftResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    party_id: str
    proposal_id: Optional[str]
    share_code: str
    participation_open: bool
    final_price: Optional[float]
    receipt_image_url: Optional[str]
    coordinator_comment: Optional[str]
    purchased_at: Optional[datetime]
    closed_at: Optional[datetime]


class GiftDetailResponse(GiftResponse):
    state: str
    proposal_name: Optional[str]
    total_price: Optional[float]
    participants: list[ParticipantResponse]


class CloseParticipationResponse(BaseModel):
    gift: GiftResponse
    participant_count: int
    price_per_family: float


class FinalizeGiftRequest(BaseModel):
    final_price: Optional[float] = None
    receipt_image_url: Optional[str] = None
    coordinator_comment: Optional[str] = None
