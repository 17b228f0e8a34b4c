"""Proposal, ProposalItem and Vote models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Proposal(SQLModel, table=True):
    __tablename__ = "proposals"

    id: str = Field(default_factory=lambda: f"prop_{secrets.token_hex(8)}", primary_key=True)
    party_id: str = Field(foreign_key="parties.id", index=True)
    name: str
    total_price: float
    voting_deadline: Optional[datetime] = None
    is_selected: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProposalItem(SQLModel, table=True):
    __tablename__ = "proposal_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    proposal_id: str = Field(foreign_key="proposals.id", index=True)
    item_name: str
    item_price: Optional[float] = None
    product_link: Optional[str] = None


class Vote(SQLModel, table=True):
    __tablename__ = "votes"
    __table_args__ = (UniqueConstraint("proposal_id", "voter_name", name="uq_votes_proposal_voter"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    proposal_id: str = Field(foreign_key="proposals.id", index=True)
    voter_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
