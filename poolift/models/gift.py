"""Group gift, direct gift and participant models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Gift(SQLModel, table=True):
    __tablename__ = "gifts"

    id: str = Field(default_factory=lambda: f"gift_{secrets.token_hex(8)}", primary_key=True)
    party_id: str = Field(foreign_key="parties.id", unique=True, index=True)
    proposal_id: Optional[str] = Field(default=None, foreign_key="proposals.id")
    share_code: str = Field(unique=True, index=True)
    participation_open: bool = Field(default=True)
    receipt_image_url: Optional[str] = None
    final_price: Optional[float] = None
    coordinator_comment: Optional[str] = None
    purchased_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Participant(SQLModel, table=True):
    __tablename__ = "participants"

    id: Optional[int] = Field(default=None, primary_key=True)
    gift_id: str = Field(foreign_key="gifts.id", index=True)
    family_name: str
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DirectGift(SQLModel, table=True):
    __tablename__ = "direct_gifts"

    id: str = Field(default_factory=lambda: f"dgft_{secrets.token_hex(8)}", primary_key=True)
    recipient_name: str
    occasion: str  # see Occasion
    gift_idea: Optional[str] = None
    estimated_price: Optional[float] = None
    organizer_name: str
    organizer_user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    share_code: str = Field(unique=True, index=True)
    status: str = Field(default="open")  # 'open' | 'purchased' | 'cancelled'
    final_price: Optional[float] = None
    organizer_comment: Optional[str] = None
    purchased_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DirectGiftParticipant(SQLModel, table=True):
    __tablename__ = "direct_gift_participants"
    __table_args__ = (
        UniqueConstraint("direct_gift_id", "participant_name", name="uq_direct_gift_participants"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    direct_gift_id: str = Field(foreign_key="direct_gifts.id", index=True)
    participant_name: str
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
