"""
Service container.

All realtime state is owned by the objects built here, once per application,
and reached through `app.state.services`. Nothing in the core is a module
level singleton.
"""
from dataclasses import dataclass
from typing import Optional

from callhub.config.redis import get_redis
from callhub.config.settings import Settings, settings as default_settings
from callhub.services.call import CallService
from callhub.services.chat_service import ChatService
from callhub.services.connection import ConnectionManager
from callhub.services.core.repositories import Repositories
from callhub.services.message_service import MessageService
from callhub.services.messaging.router import MessageRouter
from callhub.services.status_service import RedisGetter, StatusService
from callhub.services.user_service import UserService


@dataclass
class Services:
    settings: Settings
    repositories: Repositories
    connection_manager: ConnectionManager
    status_service: StatusService
    user_service: UserService
    chat_service: ChatService
    message_service: MessageService
    call_service: CallService
    message_router: MessageRouter


def build_services(
    settings: Optional[Settings] = None,
    redis_getter: Optional[RedisGetter] = None,
) -> Services:
    """Wire every service against one shared set of repositories and one registry."""
    settings = settings or default_settings
    if redis_getter is None and settings.PRESENCE_MIRROR_ENABLED:
        redis_getter = get_redis

    repositories = Repositories()
    connection_manager = ConnectionManager()
    status_service = StatusService(
        connection_manager,
        redis_getter=redis_getter,
        presence_ttl=settings.PRESENCE_TTL_SECONDS,
    )
    user_service = UserService(repositories.users, status_service)
    chat_service = ChatService(repositories, user_service)
    message_service = MessageService(repositories, chat_service, connection_manager)
    call_service = CallService(repositories, connection_manager, status_service)
    message_router = MessageRouter(connection_manager, call_service, chat_service, status_service)

    return Services(
        settings=settings,
        repositories=repositories,
        connection_manager=connection_manager,
        status_service=status_service,
        user_service=user_service,
        chat_service=chat_service,
        message_service=message_service,
        call_service=call_service,
        message_router=message_router,
    )
