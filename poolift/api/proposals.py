"""Proposal & voting API endpoints."""

from fastapi import APIRouter, Depends

from poolift.api.deps import get_store
from poolift.schemas.common import DeleteResponse
from poolift.schemas.proposal import (
    ProposalCreateRequest,
    ProposalItemResponse,
    ProposalResponse,
    VoteRequest,
    VoteResponse,
)
from poolift.services import voting
from poolift.services.lifecycle import delete_proposal
from poolift.services.voting import ProposalView
from poolift.store import EntityStore

router = APIRouter(prefix="/proposals", tags=["proposals"])


def _proposal_to_response(view: ProposalView) -> ProposalResponse:
    proposal = view.proposal
    return ProposalResponse(
        id=proposal.id,
        party_id=proposal.party_id,
        name=proposal.name,
        total_price=proposal.total_price,
        voting_deadline=proposal.voting_deadline,
        is_selected=bool(proposal.is_selected),
        items=[ProposalItemResponse.model_validate(i) for i in view.items],
        votes=[VoteResponse.model_validate(v) for v in view.votes],
        vote_count=len(view.votes),
    )


@router.post("", response_model=ProposalResponse, status_code=201)
def create_proposal(request: ProposalCreateRequest, store: EntityStore = Depends(get_store)):
    view = voting.create_proposal(
        request.party_id,
        request.name,
        request.total_price,
        [item.model_dump() for item in request.items],
        store,
        voting_deadline=request.voting_deadline,
    )
    return _proposal_to_response(view)


@router.get("", response_model=list[ProposalResponse])
def list_proposals(party_id: str, store: EntityStore = Depends(get_store)):
    return [_proposal_to_response(v) for v in voting.list_proposals(party_id, store)]


@router.get("/{proposal_id}", response_model=ProposalResponse)
def get_proposal(proposal_id: str, store: EntityStore = Depends(get_store)):
    return _proposal_to_response(voting.get_proposal(proposal_id, store))


@router.delete("/{proposal_id}", response_model=DeleteResponse)
def remove_proposal(proposal_id: str, store: EntityStore = Depends(get_store)):
    report = delete_proposal(proposal_id, store)
    return DeleteResponse(warnings=report.warnings, affected=report.affected)


@router.post("/{proposal_id}/vote", response_model=VoteResponse, status_code=201)
def vote(proposal_id: str, request: VoteRequest, store: EntityStore = Depends(get_store)):
    """Vote once per name. A repeated vote answers 409 duplicate_vote."""
    return VoteResponse.model_validate(voting.cast_vote(proposal_id, request.voter_name, store))


@router.delete("/{proposal_id}/vote")
def withdraw_vote(proposal_id: str, voter_name: str, store: EntityStore = Depends(get_store)):
    removed = voting.remove_vote(proposal_id, voter_name, store)
    return {"success": True, "removed": removed}


@router.put("/{proposal_id}/select", response_model=ProposalResponse)
def select_proposal(proposal_id: str, store: EntityStore = Depends(get_store)):
    """Select this proposal and unselect its siblings in the same party."""
    voting.select_proposal(proposal_id, store)
    return _proposal_to_response(voting.get_proposal(proposal_id, store))
