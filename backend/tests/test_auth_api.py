from tests.helpers import auth_headers, create_user, unique_username


def test_register_and_login(client):
    username = unique_username()

    # Register
    r = create_user(client, username=username, display_name="Test User", password="password123")
    assert r.status_code == 201
    data = r.json()
    assert "token" in data
    assert data["user"]["username"] == username
    assert data["user"]["displayName"] == "Test User"
    assert data["user"]["status"] == "OFFLINE"
    assert "passwordHash" not in data["user"]

    # Login
    r2 = client.post("/api/auth/login", json={"username": username, "password": "password123"})
    assert r2.status_code == 200
    data2 = r2.json()
    assert data2["user"]["id"] == data["user"]["id"]

    # Me
    r3 = client.get("/api/users/me", headers=auth_headers(data2["token"]))
    assert r3.status_code == 200
    assert r3.json()["username"] == username


def test_register_duplicate_username(client):
    username = unique_username()
    assert create_user(client, username=username).status_code == 201
    assert create_user(client, username=username).status_code == 409


def test_login_wrong_password(client):
    username = unique_username()
    create_user(client, username=username, password="password123")

    r = client.post("/api/auth/login", json={"username": username, "password": "nope-nope"})
    assert r.status_code == 401


def test_protected_routes_require_token(client):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_update_profile_and_lookup(client):
    r = create_user(client, display_name="Before")
    token = r.json()["token"]
    user_id = r.json()["user"]["id"]
    headers = auth_headers(token)

    r2 = client.put("/api/users/me", json={"displayName": "After"}, headers=headers)
    assert r2.status_code == 200
    assert r2.json()["displayName"] == "After"

    r3 = client.get(f"/api/users/{user_id}", headers=headers)
    assert r3.json()["displayName"] == "After"
    assert client.get("/api/users/missing", headers=headers).status_code == 404
    assert any(u["id"] == user_id for u in client.get("/api/users", headers=headers).json())
