from tests.helpers import register


def test_direct_call_flow(client):
    caller_id, caller_headers, _ = register(client, "Caller")
    callee_id, callee_headers, _ = register(client, "Callee")

    r = client.post("/api/calls/initiate", json={"recipientId": callee_id}, headers=caller_headers)
    assert r.status_code == 201
    call = r.json()
    assert call["status"] == "RINGING"
    assert call["type"] == "DIRECT"
    assert [p["userId"] for p in call["participants"]] == [caller_id]
    assert call["participants"][0]["displayName"] == "Caller"

    me = client.get("/api/users/me", headers=caller_headers).json()
    assert me["status"] == "IN_CALL"
    assert me["currentCallId"] == call["id"]

    r2 = client.post(f"/api/calls/{call['id']}/accept", headers=callee_headers)
    assert r2.status_code == 200
    assert r2.json()["status"] == "ACTIVE"
    assert len(r2.json()["participants"]) == 2

    # Accepting again is a state error
    r3 = client.post(f"/api/calls/{call['id']}/accept", headers=callee_headers)
    assert r3.status_code == 400

    r4 = client.post(f"/api/calls/{call['id']}/end", headers=caller_headers)
    assert r4.status_code == 200
    assert r4.json()["status"] == "ENDED"
    assert r4.json()["endedAt"] is not None

    assert client.get(f"/api/calls/{call['id']}", headers=caller_headers).json()["status"] == "ENDED"


def test_initiate_errors(client):
    caller_id, caller_headers, _ = register(client, "Caller")
    callee_id, callee_headers, _ = register(client, "Callee")
    other_id, other_headers, _ = register(client, "Other")

    assert client.post("/api/calls/initiate", json={"recipientId": caller_id}, headers=caller_headers).status_code == 400
    assert client.post("/api/calls/initiate", json={"recipientId": "ghost"}, headers=caller_headers).status_code == 404

    r = client.post("/api/calls/initiate", json={"recipientId": callee_id}, headers=caller_headers)
    assert r.status_code == 201
    assert client.post("/api/calls/initiate", json={"recipientId": callee_id}, headers=other_headers).status_code == 409

    r2 = client.post(f"/api/calls/{r.json()['id']}/reject", headers=callee_headers)
    assert r2.status_code == 200
    assert r2.json()["status"] == "ENDED"
    assert client.get("/api/calls/missing", headers=caller_headers).status_code == 404


def test_group_call_flow(client):
    a_id, a_headers, _ = register(client, "Anna")
    b_id, b_headers, _ = register(client, "Ben")
    c_id, c_headers, _ = register(client, "Outsider")

    group = client.post("/api/groups", json={"name": "Crew", "memberIds": [b_id]}, headers=a_headers).json()

    assert client.post(f"/api/groups/{group['id']}/calls/start", headers=c_headers).status_code == 403

    r = client.post(f"/api/groups/{group['id']}/calls/start", headers=a_headers)
    assert r.status_code == 201
    call = r.json()
    assert call["status"] == "ACTIVE"
    assert call["groupId"] == group["id"]

    assert client.post(f"/api/groups/{group['id']}/calls/start", headers=b_headers).status_code == 409
    assert client.get(f"/api/groups/{group['id']}", headers=a_headers).json()["activeCallId"] == call["id"]

    r2 = client.post(f"/api/groups/{group['id']}/calls/{call['id']}/join", headers=b_headers)
    assert r2.status_code == 200
    assert len(r2.json()["participants"]) == 2

    r3 = client.post(f"/api/groups/{group['id']}/calls/{call['id']}/mute?muted=true", headers=b_headers)
    assert r3.status_code == 204
    muted = client.get(f"/api/calls/{call['id']}", headers=a_headers).json()
    assert [p["isMuted"] for p in muted["participants"]] == [False, True]

    client.post(f"/api/groups/{group['id']}/calls/{call['id']}/leave", headers=a_headers)
    r4 = client.post(f"/api/groups/{group['id']}/calls/{call['id']}/leave", headers=b_headers)
    assert r4.json()["status"] == "ENDED"
    assert client.get(f"/api/groups/{group['id']}", headers=a_headers).json()["activeCallId"] is None

    r5 = client.post(f"/api/groups/{group['id']}/calls/{call['id']}/leave", headers=b_headers)
    assert r5.status_code == 400
