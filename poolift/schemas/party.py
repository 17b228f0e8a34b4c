"""Party schemas."""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from poolift.schemas.birthday import BirthdayResponse


class PartyCreateRequest(BaseModel):
    group_id: str
    party_date: date
    celebrant_ids: list[str]
    coordinator_id: Optional[str] = None


class CoordinatorResponse(BaseModel):
    id: str
    name: str


class PartyResponse(BaseModel):
    id: str
    group_id: str
    party_date: date
    coordinator: Optional[CoordinatorResponse]
    celebrants: list[BirthdayResponse]
    status: str


class PartyStatusResponse(BaseModel):
    party_id: str
    status: str
