"""Group & family API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from poolift.api.deps import get_current_user, get_optional_user, get_store, user_id_of
from poolift.models import Birthday, Party
from poolift.models.user import User
from poolift.schemas.common import DeleteResponse, LinkFamiliesRequest, LinkResponse
from poolift.schemas.group import (
    FamilyCreateRequest,
    FamilyResponse,
    GroupCreateRequest,
    GroupCreateResponse,
    GroupDetailResponse,
    GroupResponse,
    MyGroupResponse,
)
from poolift.services import groups as group_service
from poolift.services.claims import link_families
from poolift.services.lifecycle import delete_family, delete_group
from poolift.store import EntityStore

router = APIRouter(tags=["groups"])


@router.post("/groups", response_model=GroupCreateResponse, status_code=201)
def create_group(
    request: GroupCreateRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    """Create a group and its creator family. No auth required."""
    group, family = group_service.create_group(
        request.name,
        request.family_name,
        store,
        description=request.description,
        type=request.type,
        user_id=user_id_of(user),
    )
    return GroupCreateResponse(
        group=GroupResponse.model_validate(group),
        family=FamilyResponse.model_validate(family),
    )


@router.get("/groups/invite/{invite_code}", response_model=GroupResponse)
def get_group_by_invite(invite_code: str, store: EntityStore = Depends(get_store)):
    """Resolve an invite code before joining."""
    return GroupResponse.model_validate(group_service.get_group_by_invite(invite_code, store))


@router.get("/groups/{group_id}", response_model=GroupDetailResponse)
def get_group(group_id: str, store: EntityStore = Depends(get_store)):
    group = group_service.get_group(group_id, store)
    families = group_service.list_families(group_id, store)
    return GroupDetailResponse(
        **GroupResponse.model_validate(group).model_dump(),
        families=[FamilyResponse.model_validate(f) for f in families],
        birthday_count=store.count(Birthday, Birthday.group_id == group_id),
        party_count=store.count(Party, Party.group_id == group_id),
    )


@router.delete("/groups/{group_id}", response_model=DeleteResponse)
def remove_group(group_id: str, store: EntityStore = Depends(get_store)):
    """Delete a group with its families, birthdays and parties."""
    report = delete_group(group_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)


@router.get("/me/groups", response_model=list[MyGroupResponse])
def my_groups(
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Groups where the signed-in account owns a family."""
    return [
        MyGroupResponse(
            group=GroupResponse.model_validate(group),
            family=FamilyResponse.model_validate(family),
        )
        for group, family in group_service.list_user_groups(user.id, store)
    ]


# --- Families ---

@router.put("/families/link", response_model=LinkResponse)
def link_family_claims(
    request: LinkFamiliesRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    """Claim anonymous families for the signed-in account. Owned families are skipped."""
    return LinkResponse(linked=link_families(user_id_of(user), request.family_ids, store))


@router.get("/families", response_model=list[FamilyResponse])
def list_families(group_id: str, store: EntityStore = Depends(get_store)):
    return [FamilyResponse.model_validate(f) for f in group_service.list_families(group_id, store)]


@router.post("/families", response_model=FamilyResponse, status_code=201)
def join_group(
    request: FamilyCreateRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    """Join a group as a new family. Signed-in callers own the family immediately."""
    family = group_service.join_group(
        request.group_id, request.family_name, store, user_id=user_id_of(user)
    )
    return FamilyResponse.model_validate(family)


@router.get("/families/{family_id}", response_model=FamilyResponse)
def get_family(family_id: str, store: EntityStore = Depends(get_store)):
    return FamilyResponse.model_validate(group_service.get_family(family_id, store))


@router.delete("/families/{family_id}", response_model=DeleteResponse)
def remove_family(
    family_id: str,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    report = delete_family(family_id, user_id_of(user), store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)
