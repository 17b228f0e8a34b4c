"""Direct gift API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from poolift.api.deps import get_optional_user, get_store, user_id_of
from poolift.models.user import User
from poolift.schemas.common import DeleteResponse, LinkDirectGiftsRequest, LinkResponse
from poolift.schemas.direct_gift import (
    DirectGiftCreateRequest,
    DirectGiftDetailResponse,
    DirectGiftParticipantRequest,
    DirectGiftParticipantResponse,
    DirectGiftResponse,
    FinalizeDirectGiftRequest,
    FinalizeDirectGiftResponse,
)
from poolift.services import direct_gifts as direct_gift_service
from poolift.services.claims import link_direct_gifts
from poolift.services.direct_gifts import DirectGiftView
from poolift.services.lifecycle import delete_direct_gift
from poolift.store import EntityStore

router = APIRouter(prefix="/direct-gifts", tags=["direct-gifts"])


def _detail(view: DirectGiftView) -> DirectGiftDetailResponse:
    return DirectGiftDetailResponse(
        **DirectGiftResponse.model_validate(view.gift).model_dump(),
        participants=[DirectGiftParticipantResponse.model_validate(p) for p in view.participants],
    )


@router.post("", response_model=DirectGiftResponse, status_code=201)
def create_direct_gift(
    request: DirectGiftCreateRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    """Create a standalone gift. Signed-in organizers own it; anonymous ones leave it unclaimed."""
    gift = direct_gift_service.create_direct_gift(
        request.recipient_name,
        request.occasion,
        request.organizer_name,
        store,
        gift_idea=request.gift_idea,
        estimated_price=request.estimated_price,
        organizer_user_id=user_id_of(user),
    )
    return DirectGiftResponse.model_validate(gift)


@router.put("/link", response_model=LinkResponse)
def link_direct_gift_claims(
    request: LinkDirectGiftsRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    """Claim unowned direct gifts by share code for the signed-in account."""
    return LinkResponse(linked=link_direct_gifts(user_id_of(user), request.share_codes, store))


@router.get("", response_model=DirectGiftDetailResponse)
def get_by_share_code(share_code: str, store: EntityStore = Depends(get_store)):
    return _detail(direct_gift_service.get_direct_gift_by_share_code(share_code, store))


@router.get("/{gift_id}", response_model=DirectGiftDetailResponse)
def get_direct_gift(gift_id: str, store: EntityStore = Depends(get_store)):
    return _detail(direct_gift_service.get_direct_gift(gift_id, store))


@router.delete("/{gift_id}", response_model=DeleteResponse)
def remove_direct_gift(
    gift_id: str,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    report = delete_direct_gift(gift_id, user_id_of(user), store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)


@router.put("/{gift_id}/cancel", response_model=DirectGiftResponse)
def cancel_direct_gift(
    gift_id: str,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    gift = direct_gift_service.cancel_direct_gift(gift_id, user_id_of(user), store)
    return DirectGiftResponse.model_validate(gift)


@router.put("/{gift_id}/finalize", response_model=FinalizeDirectGiftResponse)
def finalize_direct_gift(
    gift_id: str,
    request: FinalizeDirectGiftRequest,
    user: Optional[User] = Depends(get_optional_user),
    store: EntityStore = Depends(get_store),
):
    result = direct_gift_service.finalize_direct_gift(
        gift_id,
        request.final_price,
        user_id_of(user),
        store,
        organizer_comment=request.organizer_comment,
    )
    return FinalizeDirectGiftResponse(
        gift=DirectGiftResponse.model_validate(result.gift),
        participant_count=result.participant_count,
        price_per_participant=result.price_per_participant,
    )


@router.post("/{gift_id}/participants", response_model=DirectGiftParticipantResponse, status_code=201)
def join_direct_gift(
    gift_id: str,
    request: DirectGiftParticipantRequest,
    store: EntityStore = Depends(get_store),
):
    participant = direct_gift_service.join_direct_gift(gift_id, request.participant_name, store)
    return DirectGiftParticipantResponse.model_validate(participant)


@router.delete("/{gift_id}/participants")
def leave_direct_gift(gift_id: str, participant_name: str, store: EntityStore = Depends(get_store)):
    removed = direct_gift_service.leave_direct_gift(gift_id, participant_name, store)
    return {"success": True, "removed": removed}
