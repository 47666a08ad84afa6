"""
Auth Service - Bearer tokens and password hashing

Issues and verifies the JWTs that identify a user on the REST API and on the
WebSocket handshake. Passwords are hashed with passlib (pbkdf2_sha256, no
native extension needed).
"""
from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from callhub.config.settings import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthError(Exception):
    """Raised when a request or connection carries no resolvable user id."""
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=settings.JWT_EXP_DAYS)
    expire = datetime.now(UTC) + expires_delta
    to_encode = {"sub": subject, "exp": int(expire.timestamp())}
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def verify_token(token: Optional[str]) -> str:
    """
    Resolve a bearer token to a user id.

    Raises:
        AuthError: the token is missing, invalid, expired or has no subject
    """
    if not token:
        raise AuthError("Missing token")
    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        raise AuthError("Invalid token")
    return payload["sub"]
