from typing import List, Optional

from callhub.models import User
from callhub.schemas.chat import UserResponse
from callhub.services.core.repositories import UserRepository
from callhub.services.status_service import StatusService
from callhub.services.auth_service import hash_password, verify_password


class UsernameTakenError(Exception):
    pass


class UserService:
    """
    User directory: registration, lookup and profile updates.
    Live status and current call come from the status service.
    """

    def __init__(self, users: UserRepository, status_service: StatusService):
        self.users = users
        self.status_service = status_service

    def register(self, username: str, password: str, display_name: str) -> User:
        if self.users.find_by_username(username) is not None:
            raise UsernameTakenError(f"Username {username} is taken")
        user = User(
            username=username,
            display_name=display_name,
            password_hash=hash_password(password),
        )
        return self.users.save(user)

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.users.find_by_username(username)
        if user and verify_password(password, user.password_hash):
            return user
        return None

    def get_by_id(self, user_id: str) -> Optional[User]:
        """
        Get user by ID.
        Returns None if not found (caller handles 404).
        """
        return self.users.find_by_id(user_id)

    def list_all(self) -> List[User]:
        return self.users.find_all()

    def update_profile(
        self,
        user_id: str,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[User]:
        user = self.users.find_by_id(user_id)
        if user is None:
            return None
        if display_name is not None:
            user.display_name = display_name
        if avatar_url is not None:
            user.avatar_url = avatar_url
        return user

    def to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            status=self.status_service.get_status(user.id),
            current_call_id=self.status_service.get_current_call(user.id),
            created_at=user.created_at,
        )
