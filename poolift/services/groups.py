"""Group and family business logic."""

import logging
from typing import Optional

from sqlmodel import col

from poolift.errors import ConstraintViolation, ValidationError
from poolift.models import Family, Group
from poolift.models.enums import GroupType
from poolift.store import EntityStore
from poolift.utils.security import generate_invite_code

logger = logging.getLogger(__name__)

FAMILY_NAME_MIN = 2
FAMILY_NAME_MAX = 50


def clean_family_name(name: str) -> str:
    trimmed = (name or "").strip()
    if len(trimmed) < FAMILY_NAME_MIN:
        raise ValidationError(f"Family name must have at least {FAMILY_NAME_MIN} characters")
    if len(trimmed) > FAMILY_NAME_MAX:
        raise ValidationError(f"Family name cannot be longer than {FAMILY_NAME_MAX} characters")
    return trimmed


def create_group(
    name: str,
    family_name: str,
    store: EntityStore,
    description: Optional[str] = None,
    type: GroupType = GroupType.OTHER,
    user_id: Optional[str] = None,
) -> tuple[Group, Family]:
    """Create a group together with its creator family, in one transaction."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")
    family_name = clean_family_name(family_name)

    with store.atomic():
        group = store.insert(Group(
            name=name,
            description=description,
            type=GroupType(type).value,
            invite_code=generate_invite_code(),
        ))
        family = store.insert(Family(
            group_id=group.id,
            name=family_name,
            is_creator=True,
            user_id=user_id,
        ))
        store.update(Group, Group.id == group.id, patch={"created_by": family.id})

    logger.info("Created group %s with creator family %s", group.id, family.id)
    return group, family


def get_group(group_id: str, store: EntityStore) -> Group:
    return store.get(Group, group_id, entity="group")


def get_group_by_invite(invite_code: str, store: EntityStore) -> Group:
    return store.select_one(
        Group, Group.invite_code == invite_code.strip().lower(), entity="group"
    )


def list_user_groups(user_id: str, store: EntityStore) -> list[tuple[Group, Family]]:
    """Groups the account holds a claimed family in."""
    families = store.select(Family, Family.user_id == user_id, order_by=Family.joined_at)
    if not families:
        return []
    groups = {
        g.id: g
        for g in store.select(Group, col(Group.id).in_([f.group_id for f in families]))
    }
    return [(groups[f.group_id], f) for f in families if f.group_id in groups]


def join_group(
    group_id: str,
    family_name: str,
    store: EntityStore,
    user_id: Optional[str] = None,
) -> Family:
    """Add a family to a group. Signed-in callers claim the family right away."""
    family_name = clean_family_name(family_name)
    get_group(group_id, store)
    try:
        return store.insert(Family(
            group_id=group_id,
            name=family_name,
            is_creator=False,
            user_id=user_id,
        ))
    except ConstraintViolation as e:
        raise ConstraintViolation(
            e.name, "A family with that name already exists in the group"
        ) from e


def list_families(group_id: str, store: EntityStore) -> list[Family]:
    return store.select(Family, Family.group_id == group_id, order_by=Family.name)


def get_family(family_id: str, store: EntityStore) -> Family:
    return store.get(Family, family_id, entity="family")
