"""Group and family schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from poolift.models.enums import GroupType


class GroupCreateRequest(BaseModel):
    name: str
    family_name: str
    description: Optional[str] = None
    type: GroupType = GroupType.OTHER


class GroupResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    description: Optional[str]
    type: str
    invite_code: str
    created_by: Optional[str]
    created_at: datetime


class FamilyResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    group_id: str
    name: str
    is_creator: bool
    user_id: Optional[str]
    joined_at: datetime


class GroupCreateResponse(BaseModel):
    group: GroupResponse
    family: FamilyResponse


class GroupDetailResponse(GroupResponse):
    families: list[FamilyResponse]
    birthday_count: int
    party_count: int


class MyGroupResponse(BaseModel):
    group: GroupResponse
    family: FamilyResponse


class FamilyCreateRequest(BaseModel):
    group_id: str
    family_name: str
