def test_register_login_me(client):
    resp = client.post("/api/auth/register", json={"username": "carol", "password": "secret"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "carol"
    assert resp.json()["role"] == "user"

    resp = client.post("/api/auth/login", json={"username": "carol", "password": "secret"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "carol"


def test_login_sets_auth_cookie(client):
    client.post("/api/auth/register", json={"username": "dave", "password": "pw"})
    resp = client.post("/api/auth/login", json={"username": "dave", "password": "pw"})
    assert "finboard_auth" in resp.cookies

    assert client.get("/api/auth/me").json()["username"] == "dave"

    client.post("/api/auth/logout")
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401


def test_duplicate_username_is_rejected(client):
    client.post("/api/auth/register", json={"username": "erin", "password": "pw"})
    resp = client.post("/api/auth/register", json={"username": "erin", "password": "other"})
    assert resp.status_code == 400


def test_wrong_password_is_rejected(client):
    client.post("/api/auth/register", json={"username": "frank", "password": "pw"})
    resp = client.post("/api/auth/login", json={"username": "frank", "password": "nope"})
    assert resp.status_code == 401


def test_invalid_token_is_rejected(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_default_admin_is_seeded_on_startup(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["role"] == "admin"
