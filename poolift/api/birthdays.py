"""Birthday & idea API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from poolift.api.deps import get_store
from poolift.schemas.birthday import (
    BirthdayCreateRequest,
    BirthdayResponse,
    IdeaCreateRequest,
    IdeaResponse,
)
from poolift.schemas.common import DeleteResponse
from poolift.services import birthdays as birthday_service
from poolift.services.lifecycle import delete_birthday, delete_idea
from poolift.store import EntityStore

router = APIRouter(tags=["birthdays"])


@router.post("/birthdays", response_model=BirthdayResponse, status_code=201)
def create_birthday(request: BirthdayCreateRequest, store: EntityStore = Depends(get_store)):
    birthday = birthday_service.create_birthday(
        request.group_id, request.child_name, request.birth_date, store
    )
    return BirthdayResponse.model_validate(birthday)


@router.get("/birthdays", response_model=list[BirthdayResponse])
def list_birthdays(group_id: str, store: EntityStore = Depends(get_store)):
    return [
        BirthdayResponse.model_validate(b)
        for b in birthday_service.list_birthdays(group_id, store)
    ]


@router.get("/birthdays/{birthday_id}", response_model=BirthdayResponse)
def get_birthday(birthday_id: str, store: EntityStore = Depends(get_store)):
    return BirthdayResponse.model_validate(birthday_service.get_birthday(birthday_id, store))


@router.delete("/birthdays/{birthday_id}", response_model=DeleteResponse)
def remove_birthday(birthday_id: str, store: EntityStore = Depends(get_store)):
    """Delete a birthday, its ideas and its party links."""
    report = delete_birthday(birthday_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)


# --- Ideas ---

@router.post("/ideas", response_model=IdeaResponse, status_code=201)
def create_idea(request: IdeaCreateRequest, store: EntityStore = Depends(get_store)):
    idea = birthday_service.create_idea(
        request.birthday_id,
        request.product_name,
        request.suggested_by,
        store,
        product_link=request.product_link,
        price=request.price,
        comment=request.comment,
    )
    return IdeaResponse.model_validate(idea)


@router.get("/ideas", response_model=list[IdeaResponse])
def list_ideas(
    birthday_id: Optional[str] = None,
    party_id: Optional[str] = None,
    store: EntityStore = Depends(get_store),
):
    """Ideas for a birthday, or for all celebrants of a party."""
    ideas = birthday_service.list_ideas(store, birthday_id=birthday_id, party_id=party_id)
    return [IdeaResponse.model_validate(i) for i in ideas]


@router.get("/ideas/{idea_id}", response_model=IdeaResponse)
def get_idea(idea_id: str, store: EntityStore = Depends(get_store)):
    return IdeaResponse.model_validate(birthday_service.get_idea(idea_id, store))


@router.delete("/ideas/{idea_id}", response_model=DeleteResponse)
def remove_idea(idea_id: str, store: EntityStore = Depends(get_store)):
    report = delete_idea(idea_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)
