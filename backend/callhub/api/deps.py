from typing import Optional
import logging

from fastapi import Depends, Header, HTTPException, status
from starlette.requests import HTTPConnection

from callhub.container import Services
from callhub.models import User
from callhub.services.auth_service import AuthError, verify_token

logger = logging.getLogger(__name__)


def get_services(connection: HTTPConnection) -> Services:
    """
    Dependency for the application's service container.
    Works for both HTTP requests and WebSockets.
    """
    return connection.app.state.services


def get_current_user(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> User:
    """Resolve the bearer token in the Authorization header to a user."""
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Authorization header")
    try:
        user_id = verify_token(token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    user = services.user_service.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user
