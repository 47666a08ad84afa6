"""
Core Infrastructure Module

Keyed in-memory repositories shared by the services:
- UserRepository: user directory
- GroupRepository / DMRepository: membership and active-call pointers
- MessageRepository: chat history
- CallRepository: call table
"""

from callhub.services.core.repositories import (
    CallRepository,
    DMRepository,
    GroupRepository,
    MessageRepository,
    UserRepository,
    Repositories,
)

__all__ = [
    "CallRepository",
    "DMRepository",
    "GroupRepository",
    "MessageRepository",
    "UserRepository",
    "Repositories",
]
