from taskflow.core.security import create_refresh_token


# ========== REGISTER ==========

def test_register_bootstraps_default_workspace(client, alice):
    """A new account gets a default workspace it owns, with the General tag"""
    workspaces = client.get("/workspaces", headers=alice["headers"]).json()
    assert len(workspaces) == 1
    assert workspaces[0]["name"] == "Default Workspace"
    assert workspaces[0]["access_level"] == "owner"
    assert workspaces[0]["is_default"] is True

    tags = client.get("/tags", headers=alice["headers"]).json()
    assert [t["name"] for t in tags] == ["General"]


def test_register_creates_preset_filters(client, alice):
    filters = client.get(f"/preferences/{alice['workspace_id']}/filters", headers=alice["headers"]).json()
    assert len(filters) == 9
    enabled = {f["key"] for f in filters if f["enabled"]}
    assert enabled == {"hide_completed", "active_past_7_days"}


def test_register_duplicate_email(client, alice):
    response = client.post(
        "/auth/register",
        json={"email": "ALICE@example.com", "name": "Other", "password": "secret123"}
    )
    assert response.status_code == 400


def test_register_validation(client):
    response = client.post("/auth/register", json={"email": "x@example.com", "name": "X", "password": "123"})
    assert response.status_code == 422


# ========== LOGIN / TOKENS ==========

def test_login_wrong_password(client, alice):
    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    assert response.status_code == 401


def test_me(client, alice):
    response = client.get("/auth/me", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert response.json()["name"] == "Alice"


def test_missing_token(client):
    assert client.get("/auth/me").status_code == 401


def test_refresh_token_is_not_an_access_token(client, alice):
    refresh_token = create_refresh_token(alice["id"], alice["email"])
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {refresh_token}"})
    assert response.status_code == 401


def test_refresh(client, alice):
    login = client.post("/auth/login", json={"email": "alice@example.com", "password": "secret123"}).json()
    response = client.post("/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert response.status_code == 200

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})
    assert me.status_code == 200


def test_refresh_rejects_access_token(client, alice):
    login = client.post("/auth/login", json={"email": "alice@example.com", "password": "secret123"}).json()
    response = client.post("/auth/refresh", json={"refresh_token": login["access_token"]})
    assert response.status_code == 401


def test_health(client):
    assert client.get("/health/z").json() == {"status": "ok"}
