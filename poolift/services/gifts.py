"""Group gift lifecycle: open -> closed -> purchased.

Transitions are conditional updates on the current state, so two
coordinators racing to close or finalize cannot both win: the loser sees zero
affected rows and gets an InvalidTransition naming the state it found.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from poolift.errors import ConstraintViolation, InvalidTransition, ValidationError
from poolift.models import Family, Gift, Participant, Party, Proposal
from poolift.models.enums import GiftState
from poolift.services.groups import clean_family_name
from poolift.services.lifecycle import gift_state
from poolift.store import EntityStore
from poolift.utils.dt import utcnow
from poolift.utils.money import price_per_family
from poolift.utils.security import generate_share_code

logger = logging.getLogger(__name__)


@dataclass
class GiftView:
    gift: Gift
    state: GiftState
    proposal: Optional[Proposal]
    participants: list[Participant]


@dataclass
class ClosedParticipation:
    gift: Gift
    participant_count: int
    price_per_family: float


def create_gift(party_id: str, store: EntityStore, proposal_id: Optional[str] = None) -> Gift:
    """Open the gift for a party. The coordinator family joins as first participant."""
    party = store.get(Party, party_id, entity="party")
    if proposal_id:
        proposal = store.get(Proposal, proposal_id, entity="proposal")
        if proposal.party_id != party_id:
            raise ValidationError("The proposal belongs to a different party")

    with store.atomic():
        try:
            gift = store.insert(Gift(
                party_id=party_id,
                proposal_id=proposal_id,
                share_code=generate_share_code(),
            ))
        except ConstraintViolation as e:
            if "party_id" not in e.name:
                raise
            raise ConstraintViolation(e.name, "This party already has a gift") from e

        if party.coordinator_id:
            coordinators = store.select(Family, Family.id == party.coordinator_id)
            if coordinators:
                store.insert(Participant(gift_id=gift.id, family_name=coordinators[0].name))

    logger.info("Created gift %s for party %s", gift.id, party_id)
    return gift


def _view(gift: Gift, store: EntityStore) -> GiftView:
    proposal = None
    if gift.proposal_id:
        proposals = store.select(Proposal, Proposal.id == gift.proposal_id)
        proposal = proposals[0] if proposals else None
    return GiftView(
        gift=gift,
        state=gift_state(gift),
        proposal=proposal,
        participants=store.select(Participant, Participant.gift_id == gift.id, order_by=Participant.joined_at),
    )


def get_gift(gift_id: str, store: EntityStore) -> GiftView:
    return _view(store.get(Gift, gift_id, entity="gift"), store)


def get_gift_by_share_code(share_code: str, store: EntityStore) -> GiftView:
    return _view(store.select_one(Gift, Gift.share_code == share_code, entity="gift"), store)


def _ensure_open(gift: Gift, message: str) -> None:
    if gift_state(gift) is not GiftState.OPEN:
        raise InvalidTransition(message)


def join_gift(gift_id: str, family_name: str, store: EntityStore) -> Participant:
    family_name = clean_family_name(family_name)
    gift = store.get(Gift, gift_id, entity="gift")
    _ensure_open(gift, "Participation is closed")
    return store.insert(Participant(gift_id=gift_id, family_name=family_name))


def leave_gift(gift_id: str, family_name: str, store: EntityStore) -> int:
    family_name = (family_name or "").strip()
    if not family_name:
        raise ValidationError("Family name is required")
    gift = store.get(Gift, gift_id, entity="gift")
    _ensure_open(gift, "You cannot leave: participation is closed")
    return store.delete(
        Participant,
        Participant.gift_id == gift_id,
        Participant.family_name == family_name,
    )


def close_participation(gift_id: str, store: EntityStore) -> ClosedParticipation:
    gift = store.get(Gift, gift_id, entity="gift")
    state = gift_state(gift)
    if state is GiftState.PURCHASED:
        raise InvalidTransition("The gift was already purchased")
    if state is GiftState.CLOSED:
        raise InvalidTransition("Participation is already closed")

    participant_count = store.count(Participant, Participant.gift_id == gift_id)
    if participant_count == 0:
        raise InvalidTransition("There are no participants yet")

    affected = store.update(
        Gift,
        Gift.id == gift_id,
        Gift.participation_open == True,  # noqa: E712
        Gift.purchased_at == None,  # noqa: E711
        patch={"participation_open": False, "closed_at": utcnow()},
    )
    if not affected:
        raise InvalidTransition("Participation is already closed")

    total = 0.0
    if gift.proposal_id:
        proposals = store.select(Proposal, Proposal.id == gift.proposal_id)
        total = proposals[0].total_price if proposals else 0.0

    return ClosedParticipation(
        gift=store.get(Gift, gift_id, entity="gift"),
        participant_count=participant_count,
        price_per_family=price_per_family(total, participant_count),
    )


def finalize_gift(
    gift_id: str,
    final_price: Optional[float],
    store: EntityStore,
    receipt_image_url: Optional[str] = None,
    coordinator_comment: Optional[str] = None,
) -> Gift:
    """Record the purchase. One-way: also force-closes participation."""
    if final_price is None or final_price <= 0:
        raise ValidationError("A final price is required")
    store.get(Gift, gift_id, entity="gift")

    now = utcnow()
    affected = store.update(
        Gift,
        Gift.id == gift_id,
        Gift.purchased_at == None,  # noqa: E711
        patch={
            "final_price": final_price,
            "receipt_image_url": receipt_image_url,
            "coordinator_comment": coordinator_comment,
            "purchased_at": now,
            "closed_at": now,
            "participation_open": False,
        },
    )
    if not affected:
        raise InvalidTransition("The gift was already purchased")

    logger.info("Gift %s finalized at %.2f", gift_id, final_price)
    return store.get(Gift, gift_id, entity="gift")
