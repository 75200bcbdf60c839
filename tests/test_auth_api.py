import pytest

SIGNUP = {
    "email": "alice@example.com",
    "password": "correct-horse-1",
    "full_name": "Alice Liddell",
    "username": "alice_l",
}


@pytest.fixture()
def registered(client):
    r = client.post("/api/auth/signup", json=SIGNUP)
    assert r.status_code == 201, r.text
    return r.json()["data"]["user"]


def _login(client, password=SIGNUP["password"]):
    return client.post("/api/auth/login", json={"email": SIGNUP["email"], "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_signup(registered):
    assert registered["email"] == "alice@example.com"
    assert registered["username"] == "alice_l"
    assert registered["full_name"] == "Alice Liddell"
    assert "password_hash" not in registered


def test_signup_duplicate(client, registered):
    r = client.post("/api/auth/signup", json={**SIGNUP, "username": "someone_else"})

    assert r.status_code == 400
    assert r.json()["message"] == "Email or username already in use"


def test_signup_invalid_username(client):
    r = client.post("/api/auth/signup", json={**SIGNUP, "username": "no spaces!"})

    assert r.status_code == 422


def test_signup_short_password(client):
    r = client.post("/api/auth/signup", json={**SIGNUP, "password": "short"})

    assert r.status_code == 422


def test_login_wrong_password(client, registered):
    r = _login(client, password="wrong-password")

    assert r.status_code == 401
    assert r.json()["error_code"] == "AuthenticationError"


def test_login_unknown_user(client):
    r = _login(client)

    assert r.status_code == 401


def test_login_and_me(client, registered):
    r = _login(client)

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["user"]["id"] == registered["id"]
    assert data["session"]["token_type"] == "bearer"
    assert data["session"]["expires_in"] > 0

    me = client.get("/api/auth/me", headers=_bearer(data["session"]["access_token"]))
    assert me.status_code == 200
    assert me.json()["data"]["user"]["email"] == "alice@example.com"
    assert me.json()["data"]["user"]["last_login"] is not None


def test_me_requires_token(client):
    r = client.get("/api/auth/me")

    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    r = client.get("/api/auth/me", headers=_bearer("not-a-jwt"))

    assert r.status_code == 401


def test_logout_revokes_token(client, registered):
    token = _login(client).json()["data"]["session"]["access_token"]

    r = client.post("/api/auth/logout", headers=_bearer(token))
    assert r.status_code == 200
    assert r.json()["message"] == "Successfully logged out"

    r = client.get("/api/auth/me", headers=_bearer(token))
    assert r.status_code == 401
    assert r.json()["message"] == "Session has ended"


def test_sessions_are_independent(client, registered):
    first = _login(client).json()["data"]["session"]["access_token"]
    second = _login(client).json()["data"]["session"]["access_token"]

    client.post("/api/auth/logout", headers=_bearer(first))

    assert client.get("/api/auth/me", headers=_bearer(second)).status_code == 200
