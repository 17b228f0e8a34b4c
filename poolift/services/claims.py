"""Claim linking: hand anonymous records over to a signed-in account.

Before signing in, a device remembers the families it created or joined and
the direct gifts it organized. After sign-in it offers those tokens here. The
link is one conditional bulk update that only touches rows nobody owns yet,
so a guessed or replayed token can never take a record away from its owner,
and two racing link calls cannot both claim the same row.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Type

from sqlmodel import SQLModel, col

from poolift.config import settings
from poolift.errors import Unauthorized, ValidationError
from poolift.models import DirectGift, Family
from poolift.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimTarget:
    name: str
    model: Type[SQLModel]
    key: str  # column the claim tokens are matched against
    owner: str  # column that records the owning account
    pattern: re.Pattern
    max_batch: int


def family_target() -> ClaimTarget:
    return ClaimTarget(
        name="families",
        model=Family,
        key="id",
        owner="user_id",
        pattern=re.compile(r"^fam_[0-9a-f]{16}$"),
        max_batch=settings.max_family_link_batch,
    )


def direct_gift_target() -> ClaimTarget:
    return ClaimTarget(
        name="direct gifts",
        model=DirectGift,
        key="share_code",
        owner="organizer_user_id",
        pattern=re.compile(rf"^[a-z0-9]{{{settings.share_code_length}}}$"),
        max_batch=settings.max_direct_gift_link_batch,
    )


def _validate(candidates: Iterable[str], target: ClaimTarget) -> list[str]:
    tokens = list(dict.fromkeys(candidates or []))
    if not tokens:
        raise ValidationError(f"No {target.name} to link")
    if len(tokens) > target.max_batch:
        raise ValidationError(f"Cannot link more than {target.max_batch} {target.name} at once")
    bad = [t for t in tokens if not isinstance(t, str) or not target.pattern.match(t)]
    if bad:
        raise ValidationError(f"Malformed claim token(s) for {target.name}", details={"invalid": bad})
    return tokens


def link_claims(
    identity_id: Optional[str],
    candidates: Iterable[str],
    target: ClaimTarget,
    store: EntityStore,
) -> int:
    """Claim every unowned candidate for ``identity_id``. Returns how many rows were linked.

    Rows already owned, by this account or another, are skipped. Zero means
    "nothing left to claim", not failure.
    """
    if not identity_id:
        raise Unauthorized("Sign in to link your records", authenticated=False)
    tokens = _validate(candidates, target)

    key = getattr(target.model, target.key)
    owner = getattr(target.model, target.owner)
    linked = store.update(
        target.model,
        col(key).in_(tokens),
        col(owner).is_(None),
        patch={target.owner: identity_id},
    )
    logger.info("Linked %d of %d %s to %s", linked, len(tokens), target.name, identity_id)
    return linked


def link_families(identity_id: Optional[str], family_ids: Iterable[str], store: EntityStore) -> int:
    return link_claims(identity_id, family_ids, family_target(), store)


def link_direct_gifts(identity_id: Optional[str], share_codes: Iterable[str], store: EntityStore) -> int:
    return link_claims(identity_id, share_codes, direct_gift_target(), store)
