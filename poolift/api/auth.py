"""Account API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from poolift.api.deps import get_current_user, get_store
from poolift.models.user import User
from poolift.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from poolift.services.accounts import authenticate_user, register_user
from poolift.store import EntityStore
from poolift.utils.security import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        user_id=user.id,
        display_name=user.display_name,
        access_token=create_access_token(user.id),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(request: RegisterRequest, store: EntityStore = Depends(get_store)):
    """Create an account. Anonymous records are linked afterwards via the link endpoints."""
    user = register_user(request.email, request.password, request.display_name, store)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, store: EntityStore = Depends(get_store)):
    user = authenticate_user(request.email, request.password, store)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse(id=user.id, email=user.email, display_name=user.display_name)
