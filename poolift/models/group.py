"""Group and Family models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Group(SQLModel, table=True):
    __tablename__ = "groups"

    id: str = Field(default_factory=lambda: f"grp_{secrets.token_hex(8)}", primary_key=True)
    name: str
    description: Optional[str] = None
    type: str = Field(default="other")  # see GroupType
    invite_code: str = Field(unique=True, index=True)
    # Creator family. Plain column: families already reference groups.
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Family(SQLModel, table=True):
    __tablename__ = "families"
    __table_args__ = (UniqueConstraint("group_id", "name", name="uq_families_group_name"),)

    id: str = Field(default_factory=lambda: f"fam_{secrets.token_hex(8)}", primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)
    name: str
    is_creator: bool = Field(default=False)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
