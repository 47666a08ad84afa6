import asyncio

import pytest

from callhub.services.connection import ClientConnection, ConnectionManager
from tests.helpers import FakeWebSocket


@pytest.fixture
def manager():
    return ConnectionManager()


async def _register(manager: ConnectionManager, user_id: str, **kwargs):
    ws = FakeWebSocket(**kwargs)
    conn = ClientConnection(ws, user_id, send_timeout=1.0)
    await manager.register(user_id, conn)
    return ws, conn


@pytest.mark.asyncio
async def test_register_and_send_to(manager):
    ws, _ = await _register(manager, "alice")

    assert manager.is_connected("alice")
    assert await manager.send_to("alice", "hello") is True
    assert ws.sent == ["hello"]


@pytest.mark.asyncio
async def test_send_to_unknown_user_is_noop(manager):
    assert await manager.send_to("nobody", "hello") is False


@pytest.mark.asyncio
async def test_register_supersedes_previous_session(manager):
    old_ws, old_conn = await _register(manager, "alice")
    new_ws, new_conn = await _register(manager, "alice")

    assert manager.get("alice") is new_conn
    assert manager.get_total_connections() == 1

    await manager.send_to("alice", "only-new")
    assert new_ws.sent == ["only-new"]
    assert old_ws.sent == []


@pytest.mark.asyncio
async def test_deregister_ignores_superseded_connection(manager):
    _, old_conn = await _register(manager, "alice")
    _, new_conn = await _register(manager, "alice")

    removed = await manager.deregister("alice", old_conn)

    assert removed is False
    assert manager.get("alice") is new_conn

    assert await manager.deregister("alice", new_conn) is True
    assert not manager.is_connected("alice")
    assert await manager.deregister("alice") is False


@pytest.mark.asyncio
async def test_fan_out_continues_past_failing_recipient(manager):
    ok1, _ = await _register(manager, "u1")
    await _register(manager, "u2", fail_with=RuntimeError("socket gone"))
    ok3, _ = await _register(manager, "u3")

    delivered = await manager.send_to_many(["u1", "u2", "u3", "offline"], "frame")

    assert delivered == 2
    assert ok1.sent == ["frame"]
    assert ok3.sent == ["frame"]


@pytest.mark.asyncio
async def test_send_to_many_deduplicates_recipients(manager):
    ws, _ = await _register(manager, "u1")

    delivered = await manager.send_to_many(["u1", "u1"], "frame")

    assert delivered == 1
    assert ws.sent == ["frame"]


@pytest.mark.asyncio
async def test_failed_write_marks_connection_closed(manager):
    _, conn = await _register(manager, "u1", fail_with=RuntimeError("broken pipe"))

    assert await manager.send_to("u1", "a") is False
    assert conn.is_open is False
    # Later frames are refused without touching the socket
    assert await manager.send_to("u1", "b") is False


@pytest.mark.asyncio
async def test_writes_to_one_session_are_serialized(manager):
    ws, _ = await _register(manager, "u1", delay=0.01)

    await asyncio.gather(*(manager.send_to("u1", f"frame-{i}") for i in range(5)))

    assert ws.max_in_flight == 1
    assert sorted(ws.sent) == [f"frame-{i}" for i in range(5)]


@pytest.mark.asyncio
async def test_slow_write_times_out():
    manager = ConnectionManager()
    ws = FakeWebSocket(delay=0.5)
    conn = ClientConnection(ws, "slow", send_timeout=0.05)
    await manager.register("slow", conn)

    assert await manager.send_to("slow", "frame") is False
    assert conn.is_open is False


@pytest.mark.asyncio
async def test_broadcast_all_reaches_every_session(manager):
    a, _ = await _register(manager, "a")
    b, _ = await _register(manager, "b")

    sent = await manager.broadcast_all("hi")
    assert sent == 2

    c, _ = await _register(manager, "c")
    sent = await manager.broadcast_all("again", exclude_user="a")

    assert sent == 2
    assert a.sent == ["hi"]
    assert b.sent == ["hi", "again"]
    assert c.sent == ["again"]
