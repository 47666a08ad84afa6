"""Business Logic Services.

Service Categories:
- Connection: registry of live WebSocket sessions
- Messaging: envelope encoding and inbound frame routing
- Call: direct and group call lifecycle
- Session: per-socket receive loop
- Core: keyed repositories

Supporting services:
- status_service: presence tracking and announcements
- auth_service: bearer token issuing and verification
- user_service / chat_service / message_service: directory, groups, DMs, messages
"""
