import asyncio
import json
import uuid
from typing import List, Optional

from fastapi.testclient import TestClient


class FakeWebSocket:
    """
    Stand-in for a Starlette WebSocket that records outbound frames.

    Set `fail_with` to make every send raise, or `delay` to make sends slow.
    """

    def __init__(self, fail_with: Optional[Exception] = None, delay: float = 0.0):
        self.sent: List[str] = []
        self.fail_with = fail_with
        self.delay = delay
        self.closed_with: Optional[int] = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def send_text(self, text: str):
        if self.fail_with is not None:
            raise self.fail_with
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.sent.append(text)
        finally:
            self.in_flight -= 1

    async def close(self, code: int = 1000, reason: Optional[str] = None):
        self.closed_with = code

    def frames(self, type_: Optional[str] = None) -> List[dict]:
        decoded = [json.loads(f) for f in self.sent]
        if type_ is None:
            return decoded
        return [f for f in decoded if f["type"] == type_]


def unique_username(prefix: str = 'user') -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def create_user(client: TestClient, username: Optional[str] = None, display_name: str = 'Test User', password: str = 'pass123'):
    if username is None:
        username = unique_username()
    payload = {
        'username': username,
        'password': password,
        'displayName': display_name,
    }
    r = client.post('/api/auth/register', json=payload)
    return r


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, display_name: str = 'Test User'):
    """Register a user and return (user_id, headers, token)."""
    r = create_user(client, display_name=display_name)
    assert r.status_code == 201, r.text
    data = r.json()
    return data['user']['id'], auth_headers(data['token']), data['token']


class ScriptedWebSocket(FakeWebSocket):
    """FakeWebSocket that also plays the inbound side of a session."""

    def __init__(self, inbound: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.accepted = False
        self.inbound: asyncio.Queue = asyncio.Queue()
        for text in inbound or []:
            self.push(text)

    def push(self, text: str):
        self.inbound.put_nowait({"type": "websocket.receive", "text": text})

    def hang_up(self):
        self.inbound.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def accept(self):
        self.accepted = True

    async def receive(self) -> dict:
        return await self.inbound.get()
