"""Direct gifts: standalone collections outside any group.

Status moves open -> cancelled or open -> purchased and never leaves a
terminal state. An organizer who created the gift while signed in owns it and
is the only one who may cancel or finalize it; an unclaimed gift is shared and
anyone holding the share code may act on it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from poolift.errors import ConstraintViolation, InvalidTransition, Unauthorized, ValidationError
from poolift.models import DirectGift, DirectGiftParticipant
from poolift.models.enums import DirectGiftStatus, Occasion
from poolift.store import EntityStore
from poolift.utils.dt import utcnow
from poolift.utils.money import price_per_family
from poolift.utils.security import generate_share_code

logger = logging.getLogger(__name__)

PARTICIPANT_NAME_MIN = 2


@dataclass
class DirectGiftView:
    gift: DirectGift
    participants: list[DirectGiftParticipant]


@dataclass
class FinalizedDirectGift:
    gift: DirectGift
    participant_count: int
    price_per_participant: float


def create_direct_gift(
    recipient_name: str,
    occasion: Occasion,
    organizer_name: str,
    store: EntityStore,
    gift_idea: Optional[str] = None,
    estimated_price: Optional[float] = None,
    organizer_user_id: Optional[str] = None,
) -> DirectGift:
    """Create the gift and add the organizer as its first participant."""
    recipient_name = (recipient_name or "").strip()
    organizer_name = (organizer_name or "").strip()
    if not recipient_name or not organizer_name:
        raise ValidationError("Recipient and organizer names are required")
    if estimated_price is not None and estimated_price < 0:
        raise ValidationError("Estimated price cannot be negative")

    with store.atomic():
        gift = store.insert(DirectGift(
            recipient_name=recipient_name,
            occasion=Occasion(occasion).value,
            gift_idea=(gift_idea or "").strip() or None,
            estimated_price=estimated_price,
            organizer_name=organizer_name,
            organizer_user_id=organizer_user_id,
            share_code=generate_share_code(),
            status=DirectGiftStatus.OPEN.value,
        ))
        store.insert(DirectGiftParticipant(direct_gift_id=gift.id, participant_name=organizer_name))

    logger.info("Created direct gift %s (claimed=%s)", gift.id, organizer_user_id is not None)
    return gift


def get_direct_gift(gift_id: str, store: EntityStore) -> DirectGiftView:
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    return DirectGiftView(gift=gift, participants=_participants(gift.id, store))


def get_direct_gift_by_share_code(share_code: str, store: EntityStore) -> DirectGiftView:
    gift = store.select_one(DirectGift, DirectGift.share_code == share_code, entity="direct gift")
    return DirectGiftView(gift=gift, participants=_participants(gift.id, store))


def _participants(gift_id: str, store: EntityStore) -> list[DirectGiftParticipant]:
    return store.select(
        DirectGiftParticipant,
        DirectGiftParticipant.direct_gift_id == gift_id,
        order_by=DirectGiftParticipant.joined_at,
    )


def _check_owner(gift: DirectGift, actor_id: Optional[str]) -> None:
    if gift.organizer_user_id is not None and gift.organizer_user_id != actor_id:
        raise Unauthorized(
            "Only the organizer can manage this gift", authenticated=actor_id is not None
        )


def _transition(gift_id: str, patch: dict, store: EntityStore) -> bool:
    """Apply a transition out of 'open'. False when the gift already left it."""
    affected = store.update(
        DirectGift,
        DirectGift.id == gift_id,
        DirectGift.status == DirectGiftStatus.OPEN.value,
        patch=patch,
    )
    return affected > 0


def cancel_direct_gift(gift_id: str, actor_id: Optional[str], store: EntityStore) -> DirectGift:
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    _check_owner(gift, actor_id)

    if gift.status == DirectGiftStatus.OPEN.value and _transition(
        gift_id, {"status": DirectGiftStatus.CANCELLED.value}, store
    ):
        logger.info("Direct gift %s cancelled", gift_id)
        return store.get(DirectGift, gift_id, entity="direct gift")

    # Lost a race or was never open: report the state actually found
    current = store.get(DirectGift, gift_id, entity="direct gift")
    if current.status == DirectGiftStatus.PURCHASED.value:
        raise InvalidTransition("Cannot cancel a gift that was already purchased")
    raise InvalidTransition("The gift is already cancelled")


def finalize_direct_gift(
    gift_id: str,
    final_price: Optional[float],
    actor_id: Optional[str],
    store: EntityStore,
    organizer_comment: Optional[str] = None,
) -> FinalizedDirectGift:
    if final_price is None or final_price <= 0:
        raise ValidationError("A final price is required")
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    _check_owner(gift, actor_id)

    if gift.status == DirectGiftStatus.OPEN.value and _transition(
        gift_id,
        {
            "status": DirectGiftStatus.PURCHASED.value,
            "final_price": final_price,
            "organizer_comment": organizer_comment,
            "purchased_at": utcnow(),
        },
        store,
    ):
        count = store.count(DirectGiftParticipant, DirectGiftParticipant.direct_gift_id == gift_id)
        return FinalizedDirectGift(
            gift=store.get(DirectGift, gift_id, entity="direct gift"),
            participant_count=count,
            price_per_participant=price_per_family(final_price, count),
        )

    current = store.get(DirectGift, gift_id, entity="direct gift")
    if current.status == DirectGiftStatus.CANCELLED.value:
        raise InvalidTransition("Cannot purchase a cancelled gift")
    raise InvalidTransition("The gift was already purchased")


def join_direct_gift(gift_id: str, participant_name: str, store: EntityStore) -> DirectGiftParticipant:
    participant_name = (participant_name or "").strip()
    if len(participant_name) < PARTICIPANT_NAME_MIN:
        raise ValidationError(f"Name must have at least {PARTICIPANT_NAME_MIN} characters")
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    if gift.status != DirectGiftStatus.OPEN.value:
        raise InvalidTransition("Participation is closed")
    try:
        return store.insert(DirectGiftParticipant(direct_gift_id=gift_id, participant_name=participant_name))
    except ConstraintViolation as e:
        raise ConstraintViolation(e.name, "You are already participating in this gift") from e


def leave_direct_gift(gift_id: str, participant_name: str, store: EntityStore) -> int:
    participant_name = (participant_name or "").strip()
    if not participant_name:
        raise ValidationError("Name is required")
    gift = store.get(DirectGift, gift_id, entity="direct gift")
    if gift.status != DirectGiftStatus.OPEN.value:
        raise InvalidTransition("You cannot leave: participation is closed")
    return store.delete(
        DirectGiftParticipant,
        DirectGiftParticipant.direct_gift_id == gift_id,
        DirectGiftParticipant.participant_name == participant_name,
    )
