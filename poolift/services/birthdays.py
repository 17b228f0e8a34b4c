"""Birthday and gift idea business logic."""

from datetime import date
from typing import Optional

from sqlmodel import col

from poolift.errors import ValidationError
from poolift.models import Birthday, Group, Idea, PartyCelebrant
from poolift.store import EntityStore


def create_birthday(group_id: str, child_name: str, birth_date: date, store: EntityStore) -> Birthday:
    child_name = (child_name or "").strip()
    if not child_name:
        raise ValidationError("Child name is required")
    store.get(Group, group_id, entity="group")
    return store.insert(Birthday(group_id=group_id, child_name=child_name, birth_date=birth_date))


def list_birthdays(group_id: str, store: EntityStore) -> list[Birthday]:
    return store.select(Birthday, Birthday.group_id == group_id, order_by=Birthday.birth_date)


def get_birthday(birthday_id: str, store: EntityStore) -> Birthday:
    return store.get(Birthday, birthday_id, entity="birthday")


def create_idea(
    birthday_id: str,
    product_name: str,
    suggested_by: str,
    store: EntityStore,
    product_link: Optional[str] = None,
    price: Optional[float] = None,
    comment: Optional[str] = None,
) -> Idea:
    product_name = (product_name or "").strip()
    suggested_by = (suggested_by or "").strip()
    if not product_name or not suggested_by:
        raise ValidationError("Product name and suggester are required")
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative")
    get_birthday(birthday_id, store)
    return store.insert(Idea(
        birthday_id=birthday_id,
        product_name=product_name,
        product_link=product_link,
        price=price,
        comment=comment,
        suggested_by=suggested_by,
    ))


def list_ideas(
    store: EntityStore,
    birthday_id: Optional[str] = None,
    party_id: Optional[str] = None,
) -> list[Idea]:
    """Ideas for one child, or for every celebrant of a party."""
    if birthday_id:
        birthday_ids = [birthday_id]
    elif party_id:
        birthday_ids = [
            c.birthday_id
            for c in store.select(PartyCelebrant, PartyCelebrant.party_id == party_id)
        ]
    else:
        raise ValidationError("birthday_id or party_id is required")
    if not birthday_ids:
        return []
    return store.select(
        Idea,
        col(Idea.birthday_id).in_(birthday_ids),
        order_by=col(Idea.created_at).desc(),
    )


def get_idea(idea_id: str, store: EntityStore) -> Idea:
    return store.get(Idea, idea_id, entity="idea")
