"""Party API endpoints."""

from fastapi import APIRouter, Depends

from poolift.api.deps import get_store
from poolift.schemas.birthday import BirthdayResponse
from poolift.schemas.common import DeleteResponse
from poolift.schemas.party import (
    CoordinatorResponse,
    PartyCreateRequest,
    PartyResponse,
    PartyStatusResponse,
)
from poolift.services import parties as party_service
from poolift.services.lifecycle import delete_party, party_status
from poolift.services.parties import PartyView
from poolift.store import EntityStore

router = APIRouter(prefix="/parties", tags=["parties"])


def _party_to_response(view: PartyView) -> PartyResponse:
    coordinator = None
    if view.coordinator is not None:
        coordinator = CoordinatorResponse(id=view.coordinator.id, name=view.coordinator.name)
    return PartyResponse(
        id=view.party.id,
        group_id=view.party.group_id,
        party_date=view.party.party_date,
        coordinator=coordinator,
        celebrants=[BirthdayResponse.model_validate(b) for b in view.celebrants],
        status=view.status.value,
    )


@router.post("", response_model=PartyResponse, status_code=201)
def create_party(request: PartyCreateRequest, store: EntityStore = Depends(get_store)):
    """Create a party. Without a coordinator, the least-busy family is assigned."""
    party = party_service.create_party(
        request.group_id,
        request.party_date,
        request.celebrant_ids,
        store,
        coordinator_id=request.coordinator_id,
    )
    return _party_to_response(party_service.get_party(party.id, store))


@router.get("", response_model=list[PartyResponse])
def list_parties(group_id: str, store: EntityStore = Depends(get_store)):
    return [_party_to_response(v) for v in party_service.list_parties(group_id, store)]


@router.get("/{party_id}", response_model=PartyResponse)
def get_party(party_id: str, store: EntityStore = Depends(get_store)):
    return _party_to_response(party_service.get_party(party_id, store))


@router.get("/{party_id}/status", response_model=PartyStatusResponse)
def get_party_status(party_id: str, store: EntityStore = Depends(get_store)):
    """Derived status, recomputed from proposals and gift on every call."""
    party_service.get_party(party_id, store)
    return PartyStatusResponse(party_id=party_id, status=party_status(party_id, store).value)


@router.get("/{party_id}/celebrants", response_model=list[BirthdayResponse])
def list_celebrants(party_id: str, store: EntityStore = Depends(get_store)):
    return [
        BirthdayResponse.model_validate(b)
        for b in party_service.list_celebrants(party_id, store)
    ]


@router.delete("/{party_id}", response_model=DeleteResponse)
def remove_party(party_id: str, store: EntityStore = Depends(get_store)):
    report = delete_party(party_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)
