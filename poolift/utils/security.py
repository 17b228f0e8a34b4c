"""Security utilities: JWT tokens, password hashing, public code generation."""

import secrets
import string
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from poolift.config import settings

CODE_ALPHABET = string.ascii_lowercase + string.digits


# --- Password Hashing ---

def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode()[:72], bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode()[:72], hashed.encode())


# --- JWT Tokens ---

def create_access_token(user_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user_id,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


# --- Public codes ---

def generate_code(length: int) -> str:
    """Unguessable lowercase alphanumeric code for share and invite links."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_share_code() -> str:
    return generate_code(settings.share_code_length)


def generate_invite_code() -> str:
    return generate_code(settings.invite_code_length)
