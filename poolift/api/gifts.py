"""Group gift API endpoints."""

from fastapi import APIRouter, Depends

from poolift.api.deps import get_store
from poolift.schemas.common import DeleteResponse
from poolift.schemas.gift import (
    CloseParticipationResponse,
    FinalizeGiftRequest,
    GiftCreateRequest,
    GiftDetailResponse,
    GiftResponse,
    ParticipantRequest,
    ParticipantResponse,
)
from poolift.services import gifts as gift_service
from poolift.services.gifts import GiftView
from poolift.services.lifecycle import delete_gift
from poolift.store import EntityStore

router = APIRouter(prefix="/gifts", tags=["gifts"])


def _gift_to_response(view: GiftView) -> GiftDetailResponse:
    return GiftDetailResponse(
        **GiftResponse.model_validate(view.gift).model_dump(),
        state=view.state.value,
        proposal_name=view.proposal.name if view.proposal else None,
        total_price=view.proposal.total_price if view.proposal else None,
        participants=[ParticipantResponse.model_validate(p) for p in view.participants],
    )


@router.post("", response_model=GiftDetailResponse, status_code=201)
def create_gift(request: GiftCreateRequest, store: EntityStore = Depends(get_store)):
    gift = gift_service.create_gift(request.party_id, store, proposal_id=request.proposal_id)
    return _gift_to_response(gift_service.get_gift(gift.id, store))


@router.get("", response_model=GiftDetailResponse)
def get_gift_by_share_code(share_code: str, store: EntityStore = Depends(get_store)):
    """Public view through the share code. No auth required."""
    return _gift_to_response(gift_service.get_gift_by_share_code(share_code, store))


@router.get("/{gift_id}", response_model=GiftDetailResponse)
def get_gift(gift_id: str, store: EntityStore = Depends(get_store)):
    return _gift_to_response(gift_service.get_gift(gift_id, store))


@router.delete("/{gift_id}", response_model=DeleteResponse)
def remove_gift(gift_id: str, store: EntityStore = Depends(get_store)):
    """Delete a gift and its participants. The party goes back to its proposals."""
    report = delete_gift(gift_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)


@router.post("/{gift_id}/participants", response_model=ParticipantResponse, status_code=201)
def join_gift(gift_id: str, request: ParticipantRequest, store: EntityStore = Depends(get_store)):
    participant = gift_service.join_gift(gift_id, request.family_name, store)
    return ParticipantResponse.model_validate(participant)


@router.delete("/{gift_id}/participants")
def leave_gift(gift_id: str, family_name: str, store: EntityStore = Depends(get_store)):
    removed = gift_service.leave_gift(gift_id, family_name, store)
    return {"success": True, "removed": removed}


@router.put("/{gift_id}/close", response_model=CloseParticipationResponse)
def close_participation(gift_id: str, store: EntityStore = Depends(get_store)):
    """Close participation and compute each family's share."""
    result = gift_service.close_participation(gift_id, store)
    return CloseParticipationResponse(
        gift=GiftResponse.model_validate(result.gift),
        participant_count=result.participant_count,
        price_per_family=result.price_per_family,
    )


@router.put("/{gift_id}/finalize", response_model=GiftResponse)
def finalize_gift(gift_id: str, request: FinalizeGiftRequest, store: EntityStore = Depends(get_store)):
    """Record the purchase. Final once done."""
    gift = gift_service.finalize_gift(
        gift_id,
        request.final_price,
        store,
        receipt_image_url=request.receipt_image_url,
        coordinator_comment=request.coordinator_comment,
    )
    return GiftResponse.model_validate(gift)
