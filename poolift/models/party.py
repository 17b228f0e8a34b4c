"""Party and celebrant join models."""

import secrets
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Party(SQLModel, table=True):
    __tablename__ = "parties"

    id: str = Field(default_factory=lambda: f"pty_{secrets.token_hex(8)}", primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)
    party_date: date
    coordinator_id: Optional[str] = Field(default=None, foreign_key="families.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PartyCelebrant(SQLModel, table=True):
    __tablename__ = "party_celebrants"
    __table_args__ = (UniqueConstraint("party_id", "birthday_id", name="uq_party_celebrants"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    party_id: str = Field(foreign_key="parties.id", index=True)
    birthday_id: str = Field(foreign_key="birthdays.id", index=True)
