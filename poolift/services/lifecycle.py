"""Lifecycle rules: derived party status, gift state and composite deletes.

Party status is never stored. It is recomputed from the proposal and gift
rows on every read so it cannot drift from them.
"""

import logging
from typing import Iterable, Optional

from sqlmodel import col

from poolift.errors import InvalidTransition, Unauthorized
from poolift.models import (
    Birthday,
    DirectGift,
    DirectGiftParticipant,
    Family,
    Gift,
    Group,
    Idea,
    Participant,
    Party,
    PartyCelebrant,
    Proposal,
    ProposalItem,
    Vote,
)
from poolift.models.enums import DirectGiftStatus, GiftState, PartyStatus
from poolift.services.deletion import DeletionPlan, DeletionReport, execute_plan
from poolift.store import EntityStore

logger = logging.getLogger(__name__)


# --- Derived state ---

def compute_party_status(proposals: Iterable[Proposal], gift: Optional[Gift]) -> PartyStatus:
    """Status of a party from its proposals and (at most one) gift.

    More than one selected proposal can exist transiently while a selection
    converges; any selection counts as decided.
    """
    if gift is not None and gift.purchased_at is not None:
        return PartyStatus.PURCHASED
    proposals = list(proposals)
    if gift is not None or any(p.is_selected for p in proposals):
        return PartyStatus.DECIDED
    if proposals:
        return PartyStatus.VOTING
    return PartyStatus.PENDING


def party_status(party_id: str, store: EntityStore) -> PartyStatus:
    proposals = store.select(Proposal, Proposal.party_id == party_id)
    gifts = store.select(Gift, Gift.party_id == party_id)
    return compute_party_status(proposals, gifts[0] if gifts else None)


def gift_state(gift: Gift) -> GiftState:
    if gift.purchased_at is not None:
        return GiftState.PURCHASED
    if not gift.participation_open:
        return GiftState.CLOSED
    return GiftState.OPEN


# --- Deletion plans ---

def plan_party_delete(party: Party, store: EntityStore) -> DeletionPlan:
    plan = DeletionPlan("party", Party, party.id)

    celebrants = store.count(PartyCelebrant, PartyCelebrant.party_id == party.id)
    if celebrants:
        plan.warnings.append(f"{celebrants} child(ren) will be unlinked from this party.")
    plan.add("party_celebrants", PartyCelebrant, PartyCelebrant.party_id == party.id)

    gifts = store.select(Gift, Gift.party_id == party.id)
    gift_ids = [g.id for g in gifts]
    if gift_ids:
        gift = gifts[0]
        participants = store.count(Participant, col(Participant.gift_id).in_(gift_ids))
        if gift.purchased_at is not None:
            plan.warnings.append("This party's gift was already purchased.")
        elif participants:
            plan.warnings.append(f"This party has an active gift with {participants} participant(s).")
        plan.add("participants", Participant, col(Participant.gift_id).in_(gift_ids))
        plan.add("gifts", Gift, Gift.party_id == party.id)

    proposal_ids = [p.id for p in store.select(Proposal, Proposal.party_id == party.id)]
    if proposal_ids:
        votes = store.count(Vote, col(Vote.proposal_id).in_(proposal_ids))
        plan.warnings.append(
            f"{len(proposal_ids)} proposal(s) and their {votes} vote(s) will be deleted."
        )
        plan.add("votes", Vote, col(Vote.proposal_id).in_(proposal_ids))
        plan.add("proposal_items", ProposalItem, col(ProposalItem.proposal_id).in_(proposal_ids))
        plan.add("proposals", Proposal, Proposal.party_id == party.id)

    return plan


def plan_group_delete(group: Group, store: EntityStore) -> DeletionPlan:
    plan = DeletionPlan("group", Group, group.id)

    parties = store.select(Party, Party.group_id == group.id)
    for party in parties:
        plan.extend(plan_party_delete(party, store))
    if parties:
        plan.warnings.append(f"{len(parties)} party(ies) will be deleted.")

    birthday_ids = [b.id for b in store.select(Birthday, Birthday.group_id == group.id)]
    if birthday_ids:
        plan.warnings.append(f"{len(birthday_ids)} registered birthday(s) will be deleted.")
        plan.add("ideas", Idea, col(Idea.birthday_id).in_(birthday_ids))
        plan.add("party_celebrants", PartyCelebrant, col(PartyCelebrant.birthday_id).in_(birthday_ids))
        plan.add("birthdays", Birthday, Birthday.group_id == group.id)

    families = store.count(Family, Family.group_id == group.id)
    if families > 1:
        plan.warnings.append(f"{families} families will be removed from the group.")
    plan.add("families", Family, Family.group_id == group.id)
    return plan


def plan_birthday_delete(birthday: Birthday, store: EntityStore) -> DeletionPlan:
    plan = DeletionPlan("birthday", Birthday, birthday.id)

    ideas = store.count(Idea, Idea.birthday_id == birthday.id)
    if ideas:
        plan.warnings.append(f"{ideas} associated idea(s) will be deleted.")
    plan.add("ideas", Idea, Idea.birthday_id == birthday.id)

    links = store.select(PartyCelebrant, PartyCelebrant.birthday_id == birthday.id)
    if links:
        plan.warnings.append(f"{birthday.child_name} will be unlinked from {len(links)} party(ies).")
        for link in links:
            others = store.count(
                PartyCelebrant,
                PartyCelebrant.party_id == link.party_id,
                PartyCelebrant.birthday_id != birthday.id,
            )
            if not others:
                plan.warnings.append(f"Party {link.party_id} will be left without celebrants.")
    plan.add("party_celebrants", PartyCelebrant, PartyCelebrant.birthday_id == birthday.id)
    return plan


def plan_family_delete(family: Family, actor_id: Optional[str], store: EntityStore) -> DeletionPlan:
    if family.is_creator:
        raise InvalidTransition("The group creator family cannot be deleted")
    if family.user_id is not None and family.user_id != actor_id:
        raise Unauthorized("This family belongs to another account", authenticated=actor_id is not None)

    plan = DeletionPlan("family", Family, family.id)
    coordinated = store.count(Party, Party.coordinator_id == family.id)
    if coordinated:
        plan.warnings.append(f"{coordinated} party(ies) will be left without a coordinator.")
        plan.add("parties", Party, Party.coordinator_id == family.id, patch={"coordinator_id": None})
    return plan


def plan_proposal_delete(proposal: Proposal, store: EntityStore) -> DeletionPlan:
    if proposal.is_selected:
        raise InvalidTransition("Cannot delete the selected proposal")
    if store.exists(Gift, Gift.proposal_id == proposal.id):
        raise InvalidTransition("A gift was already created from this proposal")

    plan = DeletionPlan("proposal", Proposal, proposal.id)
    votes = store.count(Vote, Vote.proposal_id == proposal.id)
    if votes:
        plan.warnings.append(f"{votes} vote(s) will be deleted.")
    plan.add("votes", Vote, Vote.proposal_id == proposal.id)
    plan.add("proposal_items", ProposalItem, ProposalItem.proposal_id == proposal.id)
    return plan


def plan_gift_delete(gift: Gift, store: EntityStore) -> DeletionPlan:
    plan = DeletionPlan("gift", Gift, gift.id)
    if gift.purchased_at is not None:
        plan.warnings.append("This gift was already purchased.")
    participants = store.count(Participant, Participant.gift_id == gift.id)
    if participants:
        plan.warnings.append(f"{participants} participant(s) will be removed.")
    plan.add("participants", Participant, Participant.gift_id == gift.id)
    return plan


def plan_direct_gift_delete(gift: DirectGift, actor_id: Optional[str], store: EntityStore) -> DeletionPlan:
    if gift.organizer_user_id is not None and gift.organizer_user_id != actor_id:
        raise Unauthorized("Only the organizer can manage this gift", authenticated=actor_id is not None)

    plan = DeletionPlan("direct gift", DirectGift, gift.id)
    if gift.status == DirectGiftStatus.PURCHASED.value:
        plan.warnings.append("This gift was already purchased.")
    participants = store.count(DirectGiftParticipant, DirectGiftParticipant.direct_gift_id == gift.id)
    if participants:
        plan.warnings.append(f"{participants} participant(s) will be removed.")
    plan.add(
        "direct_gift_participants",
        DirectGiftParticipant,
        DirectGiftParticipant.direct_gift_id == gift.id,
    )
    return plan


# --- Delete operations ---

def delete_party(party_id: str, store: EntityStore) -> DeletionReport:
    party = store.get(Party, party_id, entity="party")
    return execute_plan(plan_party_delete(party, store), store)


def delete_group(group_id: str, store: EntityStore) -> DeletionReport:
    group = store.get(Group, group_id, entity="group")
    return execute_plan(plan_group_delete(group, store), store)


def delete_birthday(birthday_id: str, store: EntityStore) -> DeletionReport:
    birthday = store.get(Birthday, birthday_id, entity="birthday")
    return execute_plan(plan_birthday_delete(birthday, store), store)


def delete_family(family_id: str, actor_id: Optional[str], store: EntityStore) -> DeletionReport:
    family = store.get(Family, family_id, entity="family")
    return execute_plan(plan_family_delete(family, actor_id, store), store)


def delete_proposal(proposal_id: str, store: EntityStore) -> DeletionReport:
    proposal = store.get(Proposal, proposal_id, entity="proposal")
    return execute_plan(plan_proposal_delete(proposal, store), store)


def delete_idea(idea_id: str, store: EntityStore) -> DeletionReport:
    store.get(Idea, idea_id, entity="idea")
    return execute_plan(DeletionPlan("idea", Idea, idea_id), store)


def delete_gift(gift_id: str, store: EntityStore) -> DeletionReport:
    gift = store.get(Gift, gift_id, entity="gift")
    return execute_plan(plan_gift_delete(gift, store), store)


def delete_direct_gift(gift_id: str, actor_id: Optional[str], store: EntityStore) -> DeletionReport:
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    return execute_plan(plan_direct_gift_delete(gift, actor_id, store), store)
