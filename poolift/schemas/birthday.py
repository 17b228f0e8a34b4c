"""Birthday and idea schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class BirthdayCreateRequest(BaseModel):
    group_id: str
    child_name: str
    birth_date: date


class BirthdayResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    group_id: str
    child_name: str
    birth_date: date


class IdeaCreateRequest(BaseModel):
    birthday_id: str
    product_name: str
    suggested_by: str
    product_link: Optional[str] = None
    price: Optional[float] = None
    comment: Optional[str] = None


class IdeaResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    birthday_id: str
    product_name: str
    product_link: Optional[str]
    price: Optional[float]
    comment: Optional[str]
    suggested_by: str
    created_at: datetime
