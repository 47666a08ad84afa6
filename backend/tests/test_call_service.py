import asyncio

import pytest

from callhub.models import CallStatus, CallType, UserStatus
from callhub.services.call import (
    AlreadyInCallError,
    CallNotFoundError,
    InvalidCallStateError,
    InvalidCallTargetError,
    UserNotFoundError,
)


@pytest.fixture
async def pair(services, make_user, connect):
    alice = make_user("alice", "Alice")
    bob = make_user("bob", "Bob")
    return alice, bob, await connect(alice.id), await connect(bob.id)


@pytest.mark.asyncio
async def test_initiate_direct_call_rings_recipient(services, pair):
    alice, bob, alice_ws, bob_ws = pair

    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    assert call.type == CallType.DIRECT
    assert call.status == CallStatus.RINGING
    assert call.participant_ids == [alice.id]
    assert services.status_service.get_status(alice.id) == UserStatus.IN_CALL
    assert services.status_service.get_current_call(alice.id) == call.id

    dm = services.repositories.dms.find_by_participants(alice.id, bob.id)
    assert dm is not None
    assert dm.active_call_id == call.id

    initiated = bob_ws.frames("call_initiated")
    assert len(initiated) == 1
    assert initiated[0]["data"]["callerName"] == "Alice"
    assert initiated[0]["data"]["call"]["id"] == call.id
    assert initiated[0]["data"]["call"]["status"] == "RINGING"
    assert alice_ws.frames("call_initiated") == []


@pytest.mark.asyncio
async def test_initiate_reuses_existing_dm(services, pair):
    alice, bob, _, _ = pair
    dm = services.chat_service.create_or_get_dm(bob.id, alice.id)

    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    assert dm.active_call_id == call.id
    assert len(services.chat_service.dms_for_user(alice.id)) == 1


@pytest.mark.asyncio
async def test_initiate_rejects_busy_users(services, pair, make_user):
    alice, bob, _, _ = pair
    carol = make_user("carol")
    await services.call_service.initiate_direct_call(alice.id, bob.id)

    # Caller busy
    with pytest.raises(AlreadyInCallError):
        await services.call_service.initiate_direct_call(alice.id, carol.id)
    # Recipient is being rung
    with pytest.raises(AlreadyInCallError):
        await services.call_service.initiate_direct_call(carol.id, bob.id)

    assert services.repositories.calls.count_by_status() == {"RINGING": 1}
    assert services.status_service.get_status(carol.id) == UserStatus.OFFLINE


@pytest.mark.asyncio
async def test_concurrent_initiations_admit_exactly_one(services, pair, make_user):
    alice, bob, _, _ = pair
    carol = make_user("carol")

    results = await asyncio.gather(
        services.call_service.initiate_direct_call(alice.id, bob.id),
        services.call_service.initiate_direct_call(carol.id, bob.id),
        return_exceptions=True,
    )

    calls = [r for r in results if not isinstance(r, Exception)]
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(calls) == 1
    assert len(errors) == 1 and isinstance(errors[0], AlreadyInCallError)
    assert services.repositories.calls.count_by_status() == {"RINGING": 1}


@pytest.mark.asyncio
async def test_initiate_invalid_targets(services, pair):
    alice, _, _, _ = pair

    with pytest.raises(InvalidCallTargetError):
        await services.call_service.initiate_direct_call(alice.id, alice.id)
    with pytest.raises(UserNotFoundError):
        await services.call_service.initiate_direct_call(alice.id, "ghost")


@pytest.mark.asyncio
async def test_accept_call(services, pair):
    alice, bob, alice_ws, bob_ws = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    accepted = await services.call_service.accept_call(call.id, bob.id)

    assert accepted.status == CallStatus.ACTIVE
    assert accepted.participant_ids == [alice.id, bob.id]
    assert services.status_service.get_status(bob.id) == UserStatus.IN_CALL
    for ws in (alice_ws, bob_ws):
        statuses = ws.frames("call_status")
        assert statuses[-1]["data"] == {"callId": call.id, "status": "ACTIVE"}


@pytest.mark.asyncio
async def test_accept_twice_fails_and_leaves_participants_unchanged(services, pair):
    alice, bob, _, _ = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)
    await services.call_service.accept_call(call.id, bob.id)
    before = list(call.participant_ids)

    with pytest.raises(InvalidCallStateError):
        await services.call_service.accept_call(call.id, bob.id)
    assert call.participant_ids == before

    with pytest.raises(InvalidCallStateError):
        await services.call_service.accept_call(call.id, bob.id)
    assert call.participant_ids == before


@pytest.mark.asyncio
async def test_accept_unknown_call(services):
    with pytest.raises(CallNotFoundError):
        await services.call_service.accept_call("missing", "someone")


@pytest.mark.asyncio
async def test_reject_call_notifies_initiator_only(services, pair):
    alice, bob, alice_ws, bob_ws = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    rejected = await services.call_service.reject_call(call.id, bob.id)

    assert rejected.status == CallStatus.ENDED
    assert rejected.ended_at is not None
    assert services.status_service.get_status(alice.id) == UserStatus.ONLINE
    assert services.status_service.get_current_call(alice.id) is None
    assert services.repositories.dms.find_by_participants(alice.id, bob.id).active_call_id is None
    assert alice_ws.frames("call_status")[-1]["data"]["status"] == "ENDED"
    assert bob_ws.frames("call_status") == []

    with pytest.raises(InvalidCallStateError):
        await services.call_service.reject_call(call.id, bob.id)


@pytest.mark.asyncio
async def test_end_active_call(services, pair):
    alice, bob, alice_ws, bob_ws = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)
    await services.call_service.accept_call(call.id, bob.id)

    ended = await services.call_service.end_call(call.id, alice.id)

    assert ended.status == CallStatus.ENDED
    assert ended.ended_at is not None
    for user in (alice, bob):
        assert services.status_service.get_status(user.id) == UserStatus.ONLINE
        assert services.status_service.get_current_call(user.id) is None
    assert services.repositories.dms.find_by_participants(alice.id, bob.id).active_call_id is None
    for ws in (alice_ws, bob_ws):
        assert ws.frames("call_status")[-1]["data"]["status"] == "ENDED"

    with pytest.raises(InvalidCallStateError):
        await services.call_service.end_call(call.id, alice.id)

    # Both users are free again
    again = await services.call_service.initiate_direct_call(bob.id, alice.id)
    assert again.status == CallStatus.RINGING


@pytest.mark.asyncio
async def test_end_ringing_call_stops_ringing_for_recipient(services, pair):
    alice, bob, _, bob_ws = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    await services.call_service.end_call(call.id, alice.id)

    assert bob_ws.frames("call_status")[-1]["data"] == {"callId": call.id, "status": "ENDED"}


@pytest.mark.asyncio
async def test_concurrent_accept_and_end_never_interleave(services, pair):
    alice, bob, _, _ = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    await asyncio.gather(
        services.call_service.accept_call(call.id, bob.id),
        services.call_service.end_call(call.id, alice.id),
        return_exceptions=True,
    )

    assert call.status == CallStatus.ENDED
    assert services.status_service.get_status(alice.id) != UserStatus.IN_CALL
    assert services.status_service.get_status(bob.id) != UserStatus.IN_CALL


@pytest.mark.asyncio
async def test_notifications_survive_offline_recipient(services, make_user, connect):
    alice = make_user("alice", "Alice")
    bob = make_user("bob", "Bob")
    await connect(alice.id)

    # Bob is not connected; the call is still created
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)

    assert services.call_service.find_by_id(call.id) is call


@pytest.mark.asyncio
async def test_find_by_id_has_no_side_effects(services, pair):
    alice, bob, alice_ws, bob_ws = pair
    call = await services.call_service.initiate_direct_call(alice.id, bob.id)
    sent_before = (len(alice_ws.sent), len(bob_ws.sent))

    assert services.call_service.find_by_id(call.id) is call
    assert services.call_service.find_by_id("missing") is None
    assert (len(alice_ws.sent), len(bob_ws.sent)) == sent_before
