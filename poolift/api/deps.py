"""Common API dependencies: entity store, current user extraction."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from poolift.database import get_session
from poolift.models.user import User
from poolift.realtime import change_bus
from poolift.store import EntityStore
from poolift.utils.security import decode_token

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def get_store(session: Session = Depends(get_session)) -> EntityStore:
    """One store per request, publishing committed changes to the shared bus."""
    return EntityStore(session, change_bus)


def _user_from_token(token: str, session: Session) -> User:
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    user = session.get(User, payload["sub"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Extract and validate user from JWT access token."""
    return _user_from_token(credentials.credentials, session)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
    session: Session = Depends(get_session),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, session)


def user_id_of(user: Optional[User]) -> Optional[str]:
    return user.id if user else None
