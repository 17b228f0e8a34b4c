"""Party status derivation, composite deletes and the group gift state machine."""

from datetime import date, datetime, timezone

import pytest

from poolift.errors import (
    ConstraintViolation,
    DeleteVerificationFailed,
    InvalidTransition,
    Unauthorized,
    ValidationError,
)
from poolift.models import (
    Birthday,
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
from poolift.models.enums import GiftState, PartyStatus
from poolift.services import gifts, voting
from poolift.services.birthdays import create_birthday, create_idea
from poolift.services.groups import join_group
from poolift.services.lifecycle import (
    compute_party_status,
    delete_birthday,
    delete_family,
    delete_gift,
    delete_group,
    delete_idea,
    delete_party,
    delete_proposal,
    party_status,
)
from poolift.services.parties import create_party, get_party

BIKE_ITEMS = [{"item_name": "Bike", "item_price": 80.0, "product_link": None}]


# --- Derived party status ---

def test_status_pending_without_proposals():
    assert compute_party_status([], None) is PartyStatus.PENDING


def test_status_voting_with_unselected_proposals():
    proposals = [Proposal(party_id="p", name="Bike", total_price=80)]
    assert compute_party_status(proposals, None) is PartyStatus.VOTING


def test_status_decided_by_selection_or_gift():
    selected = [Proposal(party_id="p", name="Bike", total_price=80, is_selected=True)]
    assert compute_party_status(selected, None) is PartyStatus.DECIDED

    gift = Gift(party_id="p", share_code="abc")
    assert compute_party_status([], gift) is PartyStatus.DECIDED


def test_status_purchased_wins_over_everything():
    gift = Gift(party_id="p", share_code="abc", purchased_at=datetime(2024, 5, 9, tzinfo=timezone.utc))
    assert compute_party_status([], gift) is PartyStatus.PURCHASED


def test_status_tolerates_multiple_selected():
    proposals = [
        Proposal(party_id="p", name="A", total_price=1, is_selected=True),
        Proposal(party_id="p", name="B", total_price=1, is_selected=True),
    ]
    assert compute_party_status(proposals, None) is PartyStatus.DECIDED


def test_status_follows_the_lifecycle(store, seeded):
    assert party_status(seeded.party_id, store) is PartyStatus.PENDING

    view = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store)
    assert party_status(seeded.party_id, store) is PartyStatus.VOTING

    voting.select_proposal(view.proposal.id, store)
    assert party_status(seeded.party_id, store) is PartyStatus.DECIDED

    gift = gifts.create_gift(seeded.party_id, store, proposal_id=view.proposal.id)
    gifts.finalize_gift(gift.id, 85, store)
    assert party_status(seeded.party_id, store) is PartyStatus.PURCHASED
    assert get_party(seeded.party_id, store).status is PartyStatus.PURCHASED


# --- Deletes ---

def test_delete_party_removes_celebrant_links_and_row(store, seeded):
    report = delete_party(seeded.party_id, store)

    assert report.affected["party_celebrants"] == 1
    assert report.affected["party"] == 1
    assert not store.exists(Party, Party.id == seeded.party_id)
    assert not store.exists(PartyCelebrant, PartyCelebrant.party_id == seeded.party_id)
    # The birthday is shared through the join, never owned by the party
    assert store.exists(Birthday, Birthday.id == seeded.birthday_id)


def test_delete_party_cascades_gift_and_proposals_with_warnings(store, seeded):
    view = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store)
    voting.cast_vote(view.proposal.id, "Ana", store)
    gift = gifts.create_gift(seeded.party_id, store, proposal_id=view.proposal.id)
    gifts.join_gift(gift.id, "Lopez", store)

    report = delete_party(seeded.party_id, store)

    assert any("active gift" in w for w in report.warnings)
    assert any("proposal(s)" in w for w in report.warnings)
    assert report.affected["participants"] == 2
    assert report.affected["votes"] == 1
    assert store.count(Gift, Gift.party_id == seeded.party_id) == 0
    assert store.count(Proposal, Proposal.party_id == seeded.party_id) == 0
    assert store.count(ProposalItem) == 0


def test_refused_party_delete_raises_and_rolls_back(store, seeded, monkeypatch):
    original_delete = store.delete

    def refusing_delete(model, *where):
        if model is Party:
            return 0
        return original_delete(model, *where)

    monkeypatch.setattr(store, "delete", refusing_delete)
    with pytest.raises(DeleteVerificationFailed) as exc:
        delete_party(seeded.party_id, store)
    monkeypatch.undo()

    assert exc.value.status_code == 409
    assert exc.value.details["entity"] == "party"
    assert exc.value.details["steps"]["party_celebrants"] == 1
    # The whole plan ran in one transaction
    assert store.count(PartyCelebrant, PartyCelebrant.party_id == seeded.party_id) == 1
    assert store.exists(Party, Party.id == seeded.party_id)


def test_delete_group_cascades_everything(store, seeded):
    join_group(seeded.group_id, "Lopez", store)
    create_idea(seeded.birthday_id, "Lego", "Ana", store)
    view = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store)
    voting.cast_vote(view.proposal.id, "Ana", store)
    gifts.create_gift(seeded.party_id, store)

    report = delete_group(seeded.group_id, store)

    assert report.affected["group"] == 1
    assert any("2 families" in w for w in report.warnings)
    for model in (Group, Family, Birthday, Idea, Party, PartyCelebrant, Proposal, Vote, Gift, Participant):
        assert store.count(model) == 0, f"{model.__name__} rows left behind"


def test_delete_birthday_unlinks_parties_and_warns(store, seeded):
    create_idea(seeded.birthday_id, "Lego", "Ana", store)

    report = delete_birthday(seeded.birthday_id, store)

    assert report.affected["ideas"] == 1
    assert report.affected["party_celebrants"] == 1
    assert any("without celebrants" in w for w in report.warnings)
    assert store.exists(Party, Party.id == seeded.party_id)


def test_delete_creator_family_is_rejected(store, seeded):
    with pytest.raises(InvalidTransition):
        delete_family(seeded.family_id, None, store)
    assert store.exists(Family, Family.id == seeded.family_id)


def test_delete_family_owned_by_someone_else(store, seeded, make_user):
    owner = make_user("owner@example.com", "Owner")
    intruder = make_user("intruder@example.com", "Intruder")
    family = join_group(seeded.group_id, "Lopez", store, user_id=owner)
    family_id = family.id

    with pytest.raises(Unauthorized) as exc:
        delete_family(family_id, intruder, store)
    assert exc.value.status_code == 403

    with pytest.raises(Unauthorized) as exc:
        delete_family(family_id, None, store)
    assert exc.value.status_code == 401

    delete_family(family_id, owner, store)
    assert not store.exists(Family, Family.id == family_id)


def test_delete_coordinator_family_detaches_parties(store, seeded):
    lopez = join_group(seeded.group_id, "Lopez", store).id
    mia = create_birthday(seeded.group_id, "Mia", date(2016, 9, 1), store)
    party = create_party(seeded.group_id, date(2024, 9, 6), [mia.id], store, coordinator_id=lopez)
    party_id = party.id

    report = delete_family(lopez, None, store)

    assert report.affected["parties"] == 1
    assert store.get(Party, party_id).coordinator_id is None


def test_delete_proposal_guards(store, seeded):
    chosen = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store).proposal.id
    other = voting.create_proposal(seeded.party_id, "Books", 40, [{"item_name": "Books"}], store).proposal.id
    voting.cast_vote(other, "Ana", store)
    voting.select_proposal(chosen, store)

    with pytest.raises(InvalidTransition):
        delete_proposal(chosen, store)

    report = delete_proposal(other, store)
    assert report.affected["votes"] == 1
    assert report.affected["proposal_items"] == 1
    assert not store.exists(Proposal, Proposal.id == other)


def test_delete_idea(store, seeded):
    idea_id = create_idea(seeded.birthday_id, "Lego", "Ana", store).id
    delete_idea(idea_id, store)
    assert not store.exists(Idea, Idea.id == idea_id)


# --- Group gift state machine ---

def test_gift_adds_coordinator_as_first_participant(store, seeded):
    gift = gifts.create_gift(seeded.party_id, store)
    view = gifts.get_gift(gift.id, store)
    assert view.state is GiftState.OPEN
    assert [p.family_name for p in view.participants] == ["Garcia"]


def test_one_gift_per_party(store, seeded):
    gifts.create_gift(seeded.party_id, store)
    with pytest.raises(ConstraintViolation, match="already has a gift"):
        gifts.create_gift(seeded.party_id, store)


def test_gift_proposal_must_belong_to_party(store, seeded):
    mia = create_birthday(seeded.group_id, "Mia", date(2016, 9, 1), store)
    other_party = create_party(seeded.group_id, date(2024, 9, 6), [mia.id], store)
    foreign = voting.create_proposal(other_party.id, "Bike", 80, BIKE_ITEMS, store).proposal.id

    with pytest.raises(ValidationError):
        gifts.create_gift(seeded.party_id, store, proposal_id=foreign)


def test_gift_close_then_finalize(store, seeded):
    proposal = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store).proposal.id
    gift_id = gifts.create_gift(seeded.party_id, store, proposal_id=proposal).id
    gifts.join_gift(gift_id, "Lopez", store)

    closed = gifts.close_participation(gift_id, store)
    assert closed.participant_count == 2
    assert closed.price_per_family == 40.0
    assert gifts.get_gift(gift_id, store).state is GiftState.CLOSED

    with pytest.raises(InvalidTransition):
        gifts.join_gift(gift_id, "Perez", store)
    with pytest.raises(InvalidTransition):
        gifts.close_participation(gift_id, store)

    gift = gifts.finalize_gift(gift_id, 85, store, coordinator_comment="Bought at the shop")
    assert gift.final_price == 85
    assert gift.purchased_at is not None
    assert gifts.get_gift(gift_id, store).state is GiftState.PURCHASED

    with pytest.raises(InvalidTransition, match="already purchased"):
        gifts.finalize_gift(gift_id, 90, store)
    assert store.get(Gift, gift_id).final_price == 85


def test_finalize_straight_from_open(store, seeded):
    gift_id = gifts.create_gift(seeded.party_id, store).id
    gift = gifts.finalize_gift(gift_id, 50, store)
    assert gift.participation_open is False
    assert gift.closed_at is not None


def test_finalize_requires_positive_price(store, seeded):
    gift_id = gifts.create_gift(seeded.party_id, store).id
    with pytest.raises(ValidationError):
        gifts.finalize_gift(gift_id, 0, store)
    with pytest.raises(ValidationError):
        gifts.finalize_gift(gift_id, None, store)


def test_close_requires_participants(store, seeded):
    gift_id = gifts.create_gift(seeded.party_id, store).id
    assert gifts.leave_gift(gift_id, "Garcia", store) == 1

    with pytest.raises(InvalidTransition, match="no participants"):
        gifts.close_participation(gift_id, store)


def test_delete_gift_removes_participants(store, seeded):
    proposal = voting.create_proposal(seeded.party_id, "Bike", 80, BIKE_ITEMS, store).proposal.id
    voting.select_proposal(proposal, store)
    gift_id = gifts.create_gift(seeded.party_id, store, proposal_id=proposal).id
    gifts.join_gift(gift_id, "Lopez", store)

    report = delete_gift(gift_id, store)

    assert report.affected["participants"] == 2
    assert report.affected["gift"] == 1
    assert any("2 participant(s)" in w for w in report.warnings)
    assert store.count(Participant) == 0
    assert not store.exists(Gift, Gift.id == gift_id)
    # The selected proposal still decides the party
    assert party_status(seeded.party_id, store) is PartyStatus.DECIDED


def test_delete_purchased_gift_warns(store, seeded):
    gift_id = gifts.create_gift(seeded.party_id, store).id
    gifts.finalize_gift(gift_id, 50, store)

    report = delete_gift(gift_id, store)

    assert any("already purchased" in w for w in report.warnings)
    assert party_status(seeded.party_id, store) is PartyStatus.PENDING
