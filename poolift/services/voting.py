"""Proposals, votes and proposal selection.

Selection is two statements: mark the proposal selected, then clear every
other selected proposal of the same party. The store only guarantees
per-statement atomicity here, so a failure between the two leaves more than
one proposal selected. That state is tolerated (party status treats any
selection as decided) and the next select of any proposal in the party
converges it back to exactly one.

Two selects of different proposals that interleave (A sets A, B sets B, A
clears B, B clears A) can instead leave no proposal selected. Party status
then reads as voting until a single select of either proposal runs again and
converges the party to exactly one.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from poolift.errors import ConstraintViolation, DuplicateVote, InvalidTransition, NotFound, ValidationError
from poolift.models import Gift, Party, Proposal, ProposalItem, Vote
from poolift.store import EntityStore
from poolift.utils.dt import as_utc, utcnow

logger = logging.getLogger(__name__)

VOTER_NAME_MAX = 50


@dataclass
class ProposalView:
    proposal: Proposal
    items: list[ProposalItem]
    votes: list[Vote]


def create_proposal(
    party_id: str,
    name: str,
    total_price: float,
    items: Sequence[Mapping[str, Any]],
    store: EntityStore,
    voting_deadline: Optional[datetime] = None,
) -> ProposalView:
    """Create a proposal and its line items together."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Proposal name is required")
    if total_price is None or total_price <= 0:
        raise ValidationError("Total price must be greater than zero")
    if not items:
        raise ValidationError("A proposal needs at least one item")
    if any(not (item.get("item_name") or "").strip() for item in items):
        raise ValidationError("Every item needs a name")
    store.get(Party, party_id, entity="party")

    with store.atomic():
        proposal = store.insert(Proposal(
            party_id=party_id,
            name=name,
            total_price=total_price,
            voting_deadline=as_utc(voting_deadline),
        ))
        rows = store.insert_many([
            ProposalItem(
                proposal_id=proposal.id,
                item_name=item["item_name"].strip(),
                item_price=item.get("item_price"),
                product_link=item.get("product_link"),
            )
            for item in items
        ])

    return ProposalView(proposal=proposal, items=list(rows), votes=[])


def _view(proposal: Proposal, store: EntityStore) -> ProposalView:
    return ProposalView(
        proposal=proposal,
        items=store.select(ProposalItem, ProposalItem.proposal_id == proposal.id),
        votes=store.select(Vote, Vote.proposal_id == proposal.id, order_by=Vote.created_at),
    )


def get_proposal(proposal_id: str, store: EntityStore) -> ProposalView:
    return _view(store.get(Proposal, proposal_id, entity="proposal"), store)


def list_proposals(party_id: str, store: EntityStore) -> list[ProposalView]:
    proposals = store.select(Proposal, Proposal.party_id == party_id, order_by=Proposal.created_at)
    return [_view(p, store) for p in proposals]


def voting_closed(proposal: Proposal, now: Optional[datetime] = None) -> bool:
    deadline = as_utc(proposal.voting_deadline)
    return deadline is not None and (now or utcnow()) > deadline


def cast_vote(proposal_id: str, voter_name: str, store: EntityStore) -> Vote:
    """Record one vote. The (proposal, voter) unique constraint decides who was first."""
    voter_name = (voter_name or "").strip()
    if not voter_name:
        raise ValidationError("Voter name is required")
    if len(voter_name) > VOTER_NAME_MAX:
        raise ValidationError(f"Voter name cannot be longer than {VOTER_NAME_MAX} characters")

    proposal = store.get(Proposal, proposal_id, entity="proposal")
    if voting_closed(proposal):
        raise InvalidTransition("Voting for this proposal is closed")

    try:
        return store.insert(Vote(proposal_id=proposal_id, voter_name=voter_name))
    except ConstraintViolation as e:
        if e.name != "uq_votes_proposal_voter":
            raise
        raise DuplicateVote(e.name, "You already voted for this proposal") from e


def remove_vote(proposal_id: str, voter_name: str, store: EntityStore) -> int:
    """Withdraw a vote while voting is still open."""
    voter_name = (voter_name or "").strip()
    if not voter_name:
        raise ValidationError("Voter name is required")

    proposal = store.get(Proposal, proposal_id, entity="proposal")
    if voting_closed(proposal):
        raise InvalidTransition("Voting for this proposal is closed")

    removed = store.delete(Vote, Vote.proposal_id == proposal_id, Vote.voter_name == voter_name)
    if not removed:
        raise NotFound("vote")
    return removed


def select_proposal(proposal_id: str, store: EntityStore) -> Proposal:
    proposal = store.get(Proposal, proposal_id, entity="proposal")
    gifts = store.select(Gift, Gift.party_id == proposal.party_id)
    if gifts and gifts[0].purchased_at is not None:
        raise InvalidTransition("The gift for this party was already purchased")

    # Phase 1 commits before phase 2 reads the party from the updated row
    store.update(Proposal, Proposal.id == proposal_id, patch={"is_selected": True})
    selected = store.get(Proposal, proposal_id, entity="proposal")

    try:
        cleared = store.update(
            Proposal,
            Proposal.party_id == selected.party_id,
            Proposal.id != selected.id,
            Proposal.is_selected == True,  # noqa: E712
            patch={"is_selected": False},
        )
    except SQLAlchemyError:
        logger.warning(
            "Selected proposal %s but could not clear siblings in party %s; retry select to converge",
            selected.id, selected.party_id,
        )
        raise

    if cleared:
        logger.info("Proposal %s selected, %d sibling(s) cleared", selected.id, cleared)
    return selected
