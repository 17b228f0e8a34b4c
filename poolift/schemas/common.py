"""Shared request/response schemas."""

from pydantic import BaseModel


class DeleteResponse(BaseModel):
    success: bool = True
    warnings: list[str]
    affected: dict[str, int]


class LinkFamiliesRequest(BaseModel):
    family_ids: list[str]


class LinkDirectGiftsRequest(BaseModel):
    share_codes: list[str]


class LinkResponse(BaseModel):
    linked: int
