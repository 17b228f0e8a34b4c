"""Birthday and gift Idea models."""

import secrets
from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Birthday(SQLModel, table=True):
    __tablename__ = "birthdays"

    id: str = Field(default_factory=lambda: f"bday_{secrets.token_hex(8)}", primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)
    child_name: str
    birth_date: date
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Idea(SQLModel, table=True):
    __tablename__ = "ideas"

    id: str = Field(default_factory=lambda: f"idea_{secrets.token_hex(8)}", primary_key=True)
    birthday_id: str = Field(foreign_key="birthdays.id", index=True)
    product_name: str
    product_link: Optional[str] = None
    price: Optional[float] = None
    comment: Optional[str] = None
    suggested_by: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
