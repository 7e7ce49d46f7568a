def invite(client, owner, email, access_level):
    response = client.post(
        f"/workspaces/{owner['workspace_id']}/permissions",
        headers=owner["headers"],
        json={"email": email, "access_level": access_level}
    )
    return response


def members(client, user, workspace_id):
    return client.get(f"/workspaces/{workspace_id}/permissions", headers=user["headers"]).json()


def permission_id(client, user, workspace_id, email):
    return next(p["id"] for p in members(client, user, workspace_id) if p["email"] == email)


# ========== ACCESS LEVELS ==========

def test_viewer_cannot_edit_but_editor_can(client, alice, bob, carol):
    """Owner A, editor B; A invites C as viewer: C's update is rejected, B's goes through"""
    workspace_id = alice["workspace_id"]
    assert invite(client, alice, bob["email"], "edit").status_code == 201
    assert invite(client, alice, carol["email"], "view").status_code == 201

    task = client.post("/tasks", headers=alice["headers"], json={"title": "Shared"}).json()
    url = f"/tasks/{task['id']}/status"

    denied = client.patch(url, headers=carol["headers"], json={"status": "in_progress"})
    assert denied.status_code == 403

    allowed = client.patch(url, headers=bob["headers"], json={"status": "in_progress"})
    assert allowed.status_code == 200
    assert allowed.json()["status"] == "in_progress"

    # viewers can still read
    data = client.get("/tasks", headers=carol["headers"], params={"workspace_id": workspace_id}).json()
    assert [t["title"] for t in data["groups"][0]["tasks"]] == ["Shared"]


def test_editor_cannot_manage_members(client, alice, bob, carol):
    invite(client, alice, bob["email"], "edit")
    response = client.post(
        f"/workspaces/{alice['workspace_id']}/permissions",
        headers=bob["headers"],
        json={"email": carol["email"], "access_level": "view"}
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Only owners can perform this action"


def test_invite_duplicate_and_owner_level(client, alice, bob):
    invite(client, alice, bob["email"], "view")
    assert invite(client, alice, bob["email"], "edit").status_code == 400
    assert invite(client, alice, "someone@example.com", "owner").status_code == 422


def test_invited_member_gets_presets(client, alice, bob):
    invite(client, alice, bob["email"], "view")
    filters = client.get(f"/preferences/{alice['workspace_id']}/filters", headers=bob["headers"]).json()
    assert len(filters) == 9


# ========== LAST OWNER ==========

def test_cannot_remove_sole_owner(client, alice):
    workspace_id = alice["workspace_id"]
    owner_permission = permission_id(client, alice, workspace_id, alice["email"])

    response = client.delete(f"/workspaces/{workspace_id}/permissions/{owner_permission}", headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot remove the only owner"


def test_cannot_downgrade_sole_owner(client, alice):
    workspace_id = alice["workspace_id"]
    owner_permission = permission_id(client, alice, workspace_id, alice["email"])

    response = client.put(
        f"/workspaces/{workspace_id}/permissions/{owner_permission}",
        headers=alice["headers"], json={"access_level": "edit"}
    )
    assert response.status_code == 400


def test_sole_owner_cannot_leave(client, alice):
    response = client.post(f"/workspaces/{alice['workspace_id']}/leave", headers=alice["headers"])
    assert response.status_code == 400


def test_remove_member_revokes_access_immediately(client, alice, bob):
    workspace_id = alice["workspace_id"]
    invite(client, alice, bob["email"], "edit")
    task = client.post("/tasks", headers=alice["headers"], json={"title": "Shared"}).json()
    assert client.get(f"/tasks/{task['id']}", headers=bob["headers"]).status_code == 200

    bob_permission = permission_id(client, alice, workspace_id, bob["email"])
    response = client.delete(f"/workspaces/{workspace_id}/permissions/{bob_permission}", headers=alice["headers"])
    assert response.status_code == 204

    assert client.get(f"/tasks/{task['id']}", headers=bob["headers"]).status_code == 403
    assert [p["email"] for p in members(client, alice, workspace_id)] == [alice["email"]]


def test_update_member_level(client, alice, bob):
    workspace_id = alice["workspace_id"]
    invite(client, alice, bob["email"], "view")
    bob_permission = permission_id(client, alice, workspace_id, bob["email"])

    response = client.put(
        f"/workspaces/{workspace_id}/permissions/{bob_permission}",
        headers=alice["headers"], json={"access_level": "edit"}
    )
    assert response.json()["access_level"] == "edit"
    assert client.post("/tasks", headers=bob["headers"], json={"title": "x", "workspace_id": workspace_id}).status_code == 201


# ========== OWNERSHIP TRANSFER ==========

def test_transfer_ownership(client, alice, bob):
    workspace_id = alice["workspace_id"]
    invite(client, alice, bob["email"], "view")
    bob_permission = permission_id(client, alice, workspace_id, bob["email"])

    response = client.post(
        f"/workspaces/{workspace_id}/permissions/{bob_permission}/transfer-ownership",
        headers=alice["headers"]
    )
    assert response.status_code == 200
    assert response.json()["access_level"] == "owner"

    levels = {p["email"]: p["access_level"] for p in members(client, bob, workspace_id)}
    assert levels == {alice["email"]: "edit", bob["email"]: "owner"}

    # the former owner can now leave only because bob owns it
    assert client.post(f"/workspaces/{workspace_id}/leave", headers=alice["headers"]).status_code == 204


def test_transfer_to_pending_invite_rejected(client, alice):
    workspace_id = alice["workspace_id"]
    invite(client, alice, "later@example.com", "view")
    pending = permission_id(client, alice, workspace_id, "later@example.com")

    response = client.post(
        f"/workspaces/{workspace_id}/permissions/{pending}/transfer-ownership",
        headers=alice["headers"]
    )
    assert response.status_code == 400


# ========== PENDING INVITATIONS ==========

def test_pending_invitation_activates_on_register(client, alice, make_user):
    workspace_id = alice["workspace_id"]
    response = invite(client, alice, "dave@example.com", "edit")
    assert response.json()["is_pending"] is True

    dave = make_user("dave@example.com", "Dave")
    workspaces = client.get("/workspaces", headers=dave["headers"]).json()
    shared = next(w for w in workspaces if w["id"] == workspace_id)
    assert shared["access_level"] == "edit"
    assert shared["is_default"] is False
    # dave keeps his own default workspace
    assert dave["workspace_id"] != workspace_id


# ========== LEAVE ==========

def test_leaving_default_workspace_reassigns_default(client, alice, bob):
    workspace_id = alice["workspace_id"]
    invite(client, alice, bob["email"], "edit")
    client.patch(f"/workspaces/{workspace_id}/set-default", headers=bob["headers"])

    response = client.post(f"/workspaces/{workspace_id}/leave", headers=bob["headers"])
    assert response.status_code == 204

    workspaces = client.get("/workspaces", headers=bob["headers"]).json()
    assert [w["id"] for w in workspaces] == [bob["workspace_id"]]
    assert workspaces[0]["is_default"] is True
