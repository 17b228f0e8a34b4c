"""Party business logic: creation with celebrants, coordinator rotation, reads."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlmodel import col

from poolift.errors import ValidationError
from poolift.models import Birthday, Family, Group, Party, PartyCelebrant
from poolift.models.enums import PartyStatus
from poolift.services.lifecycle import party_status
from poolift.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class PartyView:
    party: Party
    celebrants: list[Birthday]
    coordinator: Optional[Family]
    status: PartyStatus


def assign_coordinator(group_id: str, store: EntityStore) -> Optional[str]:
    """Rotate coordination: the family that has coordinated the fewest parties."""
    families = store.select(Family, Family.group_id == group_id, order_by=Family.joined_at)
    if not families:
        return None
    counts = {f.id: store.count(Party, Party.coordinator_id == f.id) for f in families}
    # min() keeps the first of equals, so ties go to the longest-standing family
    return min(families, key=lambda f: counts[f.id]).id


def create_party(
    group_id: str,
    party_date: date,
    celebrant_ids: list[str],
    store: EntityStore,
    coordinator_id: Optional[str] = None,
) -> Party:
    celebrant_ids = list(dict.fromkeys(celebrant_ids or []))
    if not celebrant_ids:
        raise ValidationError("A party needs at least one celebrant")
    store.get(Group, group_id, entity="group")

    birthdays = store.select(Birthday, col(Birthday.id).in_(celebrant_ids))
    if len(birthdays) != len(celebrant_ids) or any(b.group_id != group_id for b in birthdays):
        raise ValidationError("Every celebrant must be a birthday of this group")

    if coordinator_id:
        coordinator = store.get(Family, coordinator_id, entity="coordinator family")
        if coordinator.group_id != group_id:
            raise ValidationError("The coordinator must be a family of this group")
    else:
        coordinator_id = assign_coordinator(group_id, store)

    with store.atomic():
        party = store.insert(Party(
            group_id=group_id,
            party_date=party_date,
            coordinator_id=coordinator_id,
        ))
        store.insert_many([
            PartyCelebrant(party_id=party.id, birthday_id=birthday_id)
            for birthday_id in celebrant_ids
        ])

    logger.info("Created party %s for %d celebrant(s)", party.id, len(celebrant_ids))
    return party


def list_celebrants(party_id: str, store: EntityStore) -> list[Birthday]:
    birthday_ids = [
        c.birthday_id for c in store.select(PartyCelebrant, PartyCelebrant.party_id == party_id)
    ]
    if not birthday_ids:
        return []
    return store.select(Birthday, col(Birthday.id).in_(birthday_ids), order_by=Birthday.birth_date)


def _view(party: Party, store: EntityStore) -> PartyView:
    coordinator = None
    if party.coordinator_id:
        coordinators = store.select(Family, Family.id == party.coordinator_id)
        coordinator = coordinators[0] if coordinators else None
    return PartyView(
        party=party,
        celebrants=list_celebrants(party.id, store),
        coordinator=coordinator,
        status=party_status(party.id, store),
    )


def get_party(party_id: str, store: EntityStore) -> PartyView:
    return _view(store.get(Party, party_id, entity="party"), store)


def list_parties(group_id: str, store: EntityStore) -> list[PartyView]:
    parties = store.select(Party, Party.group_id == group_id, order_by=Party.party_date)
    return [_view(p, store) for p in parties]
