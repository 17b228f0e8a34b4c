"""Proposal and vote schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProposalItemRequest(BaseModel):
    item_name: str
    item_price: Optional[float] = None
    product_link: Optional[str] = None


class ProposalCreateRequest(BaseModel):
    party_id: str
    name: str
    total_price: float
    items: list[ProposalItemRequest]
    voting_deadline: Optional[datetime] = None


class ProposalItemResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    item_name: str
    item_price: Optional[float]
    product_link: Optional[str]


class VoteRequest(BaseModel):
    voter_name: str


class VoteResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    proposal_id: str
    voter_name: str
    created_at: datetime


class ProposalResponse(BaseModel):
    id: str
    party_id: str
    name: str
    total_price: float
    voting_deadline: Optional[datetime]
    is_selected: bool
    items: list[ProposalItemResponse]
    votes: list[VoteResponse]
    vote_count: int
