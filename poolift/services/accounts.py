"""Account registration and login."""

from typing import Optional

from poolift.errors import ConstraintViolation, ValidationError
from poolift.models import User
from poolift.store import EntityStore
from poolift.utils.security import hash_password, verify_password

PASSWORD_MIN = 8


def register_user(email: str, password: str, display_name: str, store: EntityStore) -> User:
    email = (email or "").strip().lower()
    display_name = (display_name or "").strip()
    if "@" not in email:
        raise ValidationError("A valid email is required")
    if len(password or "") < PASSWORD_MIN:
        raise ValidationError(f"Password must have at least {PASSWORD_MIN} characters")
    if not display_name:
        raise ValidationError("Display name is required")
    try:
        return store.insert(User(
            email=email,
            password_hash=hash_password(password),
            display_name=display_name,
        ))
    except ConstraintViolation as e:
        raise ConstraintViolation(e.name, "Email already registered") from e


def authenticate_user(email: str, password: str, store: EntityStore) -> Optional[User]:
    users = store.select(User, User.email == (email or "").strip().lower())
    if not users:
        return None
    if not verify_password(password, users[0].password_hash):
        return None
    return users[0]
