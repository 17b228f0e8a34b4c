"""Votes and the convergent two-phase proposal selection."""

import logging
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from poolift.errors import ConstraintViolation, DuplicateVote, InvalidTransition, NotFound, ValidationError
from poolift.models import Proposal, Vote
from poolift.models.enums import PartyStatus
from poolift.services import gifts, voting
from poolift.services.lifecycle import party_status
from poolift.utils.dt import utcnow

ITEMS = [{"item_name": "Bike", "item_price": 80.0}]


def _proposal(store, party_id, name="Bike", total=80.0, **kwargs):
    return voting.create_proposal(party_id, name, total, ITEMS, store, **kwargs).proposal.id


def _selected(store, party_id):
    rows = store.select(Proposal, Proposal.party_id == party_id, Proposal.is_selected == True)  # noqa: E712
    return sorted(p.id for p in rows)


def test_create_proposal_with_items(store, seeded):
    view = voting.create_proposal(
        seeded.party_id,
        "Bike",
        80,
        [{"item_name": "Bike", "item_price": 70.0}, {"item_name": "Helmet", "item_price": 10.0}],
        store,
    )
    assert len(view.items) == 2
    assert voting.get_proposal(view.proposal.id, store).proposal.total_price == 80


def test_create_proposal_validation(store, seeded):
    with pytest.raises(ValidationError):
        voting.create_proposal(seeded.party_id, "Bike", 0, ITEMS, store)
    with pytest.raises(ValidationError):
        voting.create_proposal(seeded.party_id, "Bike", 80, [], store)
    with pytest.raises(ValidationError):
        voting.create_proposal(seeded.party_id, " ", 80, ITEMS, store)


def test_first_vote_wins(store, seeded):
    proposal_id = _proposal(store, seeded.party_id)
    voting.cast_vote(proposal_id, "Ana", store)

    with pytest.raises(DuplicateVote) as exc:
        voting.cast_vote(proposal_id, "Ana", store)

    assert isinstance(exc.value, ConstraintViolation)
    assert exc.value.name == "uq_votes_proposal_voter"
    assert exc.value.status_code == 409
    assert store.count(Vote, Vote.proposal_id == proposal_id) == 1


def test_same_voter_on_different_proposals(store, seeded):
    first = _proposal(store, seeded.party_id, "Bike")
    second = _proposal(store, seeded.party_id, "Books")
    voting.cast_vote(first, "Ana", store)
    voting.cast_vote(second, "Ana", store)
    voting.cast_vote(first, "Luis", store)
    assert store.count(Vote) == 3


def test_vote_after_deadline_is_rejected(store, seeded):
    proposal_id = _proposal(store, seeded.party_id, voting_deadline=utcnow() - timedelta(hours=1))
    with pytest.raises(InvalidTransition, match="closed"):
        voting.cast_vote(proposal_id, "Ana", store)


def test_vote_before_deadline(store, seeded):
    proposal_id = _proposal(store, seeded.party_id, voting_deadline=utcnow() + timedelta(days=2))
    assert voting.cast_vote(proposal_id, "Ana", store).voter_name == "Ana"


def test_vote_requires_a_name(store, seeded):
    proposal_id = _proposal(store, seeded.party_id)
    with pytest.raises(ValidationError):
        voting.cast_vote(proposal_id, "   ", store)


def test_select_leaves_exactly_one(store, seeded):
    ids = [_proposal(store, seeded.party_id, name) for name in ("A", "B", "C")]

    voting.select_proposal(ids[0], store)
    voting.select_proposal(ids[2], store)
    voting.select_proposal(ids[1], store)

    assert _selected(store, seeded.party_id) == [ids[1]]


def test_select_repairs_multi_selection(store, seeded):
    ids = [_proposal(store, seeded.party_id, name) for name in ("A", "B", "C")]
    store.update(Proposal, Proposal.party_id == seeded.party_id, patch={"is_selected": True})
    assert party_status(seeded.party_id, store) is PartyStatus.DECIDED

    voting.select_proposal(ids[2], store)

    assert _selected(store, seeded.party_id) == [ids[2]]


def test_failed_clear_is_logged_and_repaired_by_retry(store, seeded, monkeypatch, caplog):
    first = _proposal(store, seeded.party_id, "A")
    second = _proposal(store, seeded.party_id, "B")
    voting.select_proposal(first, store)

    original_update = store.update

    def flaky_update(model, *where, patch):
        if patch == {"is_selected": False}:
            raise OperationalError("UPDATE proposals", {}, Exception("database is locked"))
        return original_update(model, *where, patch=patch)

    monkeypatch.setattr(store, "update", flaky_update)
    with caplog.at_level(logging.WARNING, logger="poolift.services.voting"):
        with pytest.raises(OperationalError):
            voting.select_proposal(second, store)
    monkeypatch.undo()

    assert "could not clear siblings" in caplog.text
    assert _selected(store, seeded.party_id) == sorted([first, second])
    assert party_status(seeded.party_id, store) is PartyStatus.DECIDED

    voting.select_proposal(second, store)
    assert _selected(store, seeded.party_id) == [second]


def test_select_after_purchase_is_rejected(store, seeded):
    first = _proposal(store, seeded.party_id, "A")
    second = _proposal(store, seeded.party_id, "B")
    voting.select_proposal(first, store)
    gift_id = gifts.create_gift(seeded.party_id, store, proposal_id=first).id
    gifts.finalize_gift(gift_id, 80, store)

    with pytest.raises(InvalidTransition):
        voting.select_proposal(second, store)
    assert _selected(store, seeded.party_id) == [first]


def test_withdraw_vote_frees_the_name(store, seeded):
    proposal_id = _proposal(store, seeded.party_id)
    voting.cast_vote(proposal_id, "Ana", store)

    assert voting.remove_vote(proposal_id, " Ana ", store) == 1
    assert store.count(Vote, Vote.proposal_id == proposal_id) == 0

    with pytest.raises(NotFound):
        voting.remove_vote(proposal_id, "Ana", store)

    # The name can vote again once withdrawn
    voting.cast_vote(proposal_id, "Ana", store)
    assert store.count(Vote, Vote.proposal_id == proposal_id) == 1


def test_withdraw_vote_after_deadline_is_rejected(store, seeded):
    proposal_id = _proposal(store, seeded.party_id, voting_deadline=utcnow() - timedelta(hours=1))
    store.insert(Vote(proposal_id=proposal_id, voter_name="Ana"))

    with pytest.raises(InvalidTransition):
        voting.remove_vote(proposal_id, "Ana", store)
    assert store.count(Vote, Vote.proposal_id == proposal_id) == 1
