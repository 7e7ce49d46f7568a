from datetime import timedelta

from taskflow.services.lifecycle import get_today


def create_task(client, user, **fields):
    payload = {"title": "Task", **fields}
    response = client.post("/tasks", headers=user["headers"], json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def query(client, user, **body):
    body.setdefault("workspace_id", user["workspace_id"])
    response = client.post("/tasks/query", headers=user["headers"], json=body)
    assert response.status_code == 200, response.text
    return response.json()


def general_tag_id(client, user):
    return client.get("/tags", headers=user["headers"]).json()[0]["id"]


# ========== CRUD ==========

def test_create_then_fetch_round_trip(client, alice):
    tag_id = general_tag_id(client, alice)
    created = create_task(
        client, alice,
        title="Write report",
        description="Quarterly numbers",
        priority="high",
        due_date="2026-05-01",
        tag_id=tag_id,
    )
    fetched = client.get(f"/tasks/{created['id']}", headers=alice["headers"]).json()

    assert fetched == created
    assert fetched["title"] == "Write report"
    assert fetched["status"] == "todo"
    assert fetched["priority"] == "high"
    assert fetched["due_date"] == "2026-05-01"
    assert fetched["tag_name"] == "General"
    assert fetched["workspace_id"] == alice["workspace_id"]


def test_create_assigns_creator_by_default(client, alice):
    task = create_task(client, alice)
    assert task["assignee_ids"] == [alice["id"]]
    assert task["assignee_names"] == ["Alice"]


def test_create_without_assignees(client, alice):
    task = create_task(client, alice, assignee_ids=[])
    assert task["assignee_ids"] == []


def test_create_done_task_stamps_dates(client, alice):
    task = create_task(client, alice, status="done")
    assert task["completion_date"] == get_today().isoformat()
    assert task["start_date"] == get_today().isoformat()


def test_create_rejects_invalid_status(client, alice):
    response = client.post("/tasks", headers=alice["headers"], json={"title": "x", "status": "blocked"})
    assert response.status_code == 422


def test_create_rejects_completion_date_on_open_task(client, alice):
    response = client.post(
        "/tasks", headers=alice["headers"],
        json={"title": "x", "status": "todo", "completion_date": "2026-01-01"}
    )
    assert response.status_code == 400


def test_create_rejects_foreign_assignee(client, alice, bob):
    response = client.post("/tasks", headers=alice["headers"], json={"title": "x", "assignee_ids": [bob["id"]]})
    assert response.status_code == 400


def test_create_rejects_tag_of_other_workspace(client, alice, bob):
    response = client.post(
        "/tasks", headers=alice["headers"],
        json={"title": "x", "tag_id": general_tag_id(client, bob)}
    )
    assert response.status_code == 400


def test_update_partial(client, alice):
    task = create_task(client, alice, title="Old", description="keep me")
    response = client.put(f"/tasks/{task['id']}", headers=alice["headers"], json={"title": "New"})

    assert response.status_code == 200
    assert response.json()["title"] == "New"
    assert response.json()["description"] == "keep me"


def test_update_rejects_null_priority(client, alice):
    task = create_task(client, alice, priority="high")
    response = client.put(f"/tasks/{task['id']}", headers=alice["headers"], json={"priority": None})

    assert response.status_code == 400
    assert client.get(f"/tasks/{task['id']}", headers=alice["headers"]).json()["priority"] == "high"


def test_update_status_writes_history(client, alice):
    task = create_task(client, alice)
    client.put(f"/tasks/{task['id']}", headers=alice["headers"], json={"status": "in_progress"})

    history = client.get(f"/tasks/{task['id']}/history", headers=alice["headers"]).json()
    assert [h["status"] for h in history] == ["todo", "in_progress"]
    assert history[1]["notes"] == "Status updated via edit"


def test_delete_task(client, alice):
    task = create_task(client, alice)
    assert client.delete(f"/tasks/{task['id']}", headers=alice["headers"]).status_code == 204
    assert client.get(f"/tasks/{task['id']}", headers=alice["headers"]).status_code == 404


def test_other_user_cannot_read_task(client, alice, bob):
    task = create_task(client, alice)
    assert client.get(f"/tasks/{task['id']}", headers=bob["headers"]).status_code == 403


# ========== LIFECYCLE ==========

def test_cycle_status_endpoint(client, alice):
    task = create_task(client, alice)
    url = f"/tasks/{task['id']}/cycle-status"

    first = client.post(url, headers=alice["headers"]).json()
    assert first["status"] == "in_progress"
    assert first["start_date"] == get_today().isoformat()
    assert client.post(url, headers=alice["headers"]).json()["status"] == "paused"
    assert client.post(url, headers=alice["headers"]).json()["status"] == "in_progress"


def test_complete_writes_single_history_row(client, alice):
    task = create_task(client, alice)
    url = f"/tasks/{task['id']}/complete"

    done = client.post(url, headers=alice["headers"]).json()
    assert done["status"] == "done"
    assert done["completion_date"] == get_today().isoformat()

    # completing again and cycling a done task change nothing
    client.post(url, headers=alice["headers"])
    client.post(f"/tasks/{task['id']}/cycle-status", headers=alice["headers"])

    history = client.get(f"/tasks/{task['id']}/history", headers=alice["headers"]).json()
    assert [h["status"] for h in history] == ["todo", "done"]


def test_set_status_out_of_done_clears_completion_date(client, alice):
    task = create_task(client, alice, status="done")
    response = client.patch(f"/tasks/{task['id']}/status", headers=alice["headers"], json={"status": "todo"})

    assert response.status_code == 200
    assert response.json()["status"] == "todo"
    assert response.json()["completion_date"] is None


def test_cycle_priority_endpoint(client, alice):
    task = create_task(client, alice)
    url = f"/tasks/{task['id']}/cycle-priority"
    seen = [client.post(url, headers=alice["headers"]).json()["priority"] for _ in range(4)]
    assert seen == ["high", "urgent", "low", "normal"]


# ========== GROUPED READS ==========

def test_planner_hides_completed_by_default(client, alice):
    create_task(client, alice, title="open")
    create_task(client, alice, title="finished", status="done")

    response = client.get("/tasks", headers=alice["headers"], params={"view": "planner"})
    data = response.json()

    assert data["view"] == "planner"
    assert [g["key"] for g in data["groups"]] == ["in_progress", "todo"]
    assert [t["title"] for t in data["groups"][1]["tasks"]] == ["open"]


def test_planner_shows_completed_when_preset_disabled(client, alice):
    create_task(client, alice, title="finished", status="done")
    client.patch(
        f"/preferences/{alice['workspace_id']}/filters/hide_completed",
        headers=alice["headers"], json={"enabled": False}
    )

    data = client.get("/tasks", headers=alice["headers"]).json()
    assert [g["name"] for g in data["groups"]] == ["In Progress & Paused", "To Do", "Completed"]
    assert [t["title"] for t in data["groups"][2]["tasks"]] == ["finished"]


def test_planner_in_progress_bucket(client, alice):
    task = create_task(client, alice, title="busy", status="in_progress", priority="urgent")
    create_task(client, alice, title="waiting", status="paused")

    data = query(client, alice, view="planner")
    in_progress = data["groups"][0]
    assert in_progress["name"] == "In Progress & Paused"
    assert [t["title"] for t in in_progress["tasks"]] == ["busy", "waiting"]
    assert in_progress["tasks"][0]["id"] == task["id"]


def test_tracker_groups_by_tag(client, alice):
    tag = client.post("/tags", headers=alice["headers"], json={"name": "Admin"}).json()
    create_task(client, alice, title="tagged", status="in_progress", tag_id=tag["id"])
    create_task(client, alice, title="loose", status="in_progress")

    data = query(client, alice, view="tracker")
    assert [g["name"] for g in data["groups"]] == ["Unassigned", "Admin"]
    assert data["groups"][0]["key"] is None
    assert data["groups"][1]["key"] == tag["id"]


def test_tracker_default_preset_drops_idle_tasks(client, alice):
    create_task(client, alice, title="idle")
    data = query(client, alice, view="tracker")
    assert data["groups"] == []

    data = query(client, alice, view="tracker", preset_keys=[])
    assert [t["title"] for t in data["groups"][0]["tasks"]] == ["idle"]


def test_query_with_ad_hoc_filter(client, alice):
    tomorrow = (get_today() + timedelta(days=1)).isoformat()
    create_task(client, alice, title="soon", due_date=tomorrow)
    create_task(client, alice, title="someday")

    due_soon = {
        "operator": "AND",
        "conditions": [
            {"condition_type": "date_diff", "date_from": "today", "date_to": "due_date", "operator": "<=", "days": 7}
        ],
    }
    data = query(client, alice, view="planner", filters=[due_soon])
    assert [t["title"] for t in data["groups"][1]["tasks"]] == ["soon"]


def test_query_with_named_presets(client, alice):
    tomorrow = (get_today() + timedelta(days=1)).isoformat()
    create_task(client, alice, title="soon", due_date=tomorrow)
    create_task(client, alice, title="late", due_date="2020-01-01")

    data = query(client, alice, preset_keys=["overdue"])
    assert [t["title"] for t in data["groups"][1]["tasks"]] == ["late"]


def test_ad_hoc_group_named_like_preset_keeps_completed(client, alice):
    """Only the stored Hide Completed preset drops the Completed bucket"""
    create_task(client, alice, title="finished", status="done")
    lookalike = {
        "name": "hide_completed",
        "operator": "AND",
        "conditions": [{"condition_type": "list", "field": "priority", "operator": "=", "values": ["normal"]}],
    }
    data = query(client, alice, view="planner", preset_keys=[], filters=[lookalike])

    assert [g["key"] for g in data["groups"]] == ["in_progress", "todo", "completed"]
    assert [t["title"] for t in data["groups"][2]["tasks"]] == ["finished"]


def test_query_unknown_preset(client, alice):
    response = client.post(
        "/tasks/query", headers=alice["headers"],
        json={"workspace_id": alice["workspace_id"], "preset_keys": ["nope"]}
    )
    assert response.status_code == 400


# ========== MOVE ==========

def test_move_in_planner_changes_status(client, alice):
    task = create_task(client, alice)
    response = client.post(
        f"/tasks/{task['id']}/move", headers=alice["headers"],
        json={"view": "planner", "bucket": "completed"}
    )
    assert response.json()["status"] == "done"
    assert response.json()["completion_date"] == get_today().isoformat()


def test_move_into_own_bucket_is_noop(client, alice):
    task = create_task(client, alice, status="paused")
    response = client.post(
        f"/tasks/{task['id']}/move", headers=alice["headers"],
        json={"view": "planner", "bucket": "in_progress"}
    )
    assert response.json()["status"] == "paused"

    history = client.get(f"/tasks/{task['id']}/history", headers=alice["headers"]).json()
    assert len(history) == 1


def test_move_in_tracker_changes_tag(client, alice):
    tag_id = general_tag_id(client, alice)
    task = create_task(client, alice, tag_id=tag_id)
    response = client.post(
        f"/tasks/{task['id']}/move", headers=alice["headers"],
        json={"view": "tracker", "tag_id": None}
    )
    assert response.json()["tag_id"] is None
    assert response.json()["status"] == "todo"


def test_move_to_unknown_bucket(client, alice):
    task = create_task(client, alice)
    response = client.post(
        f"/tasks/{task['id']}/move", headers=alice["headers"],
        json={"view": "planner", "bucket": "someday"}
    )
    assert response.status_code == 400


# ========== EXPORT ==========

def test_export(client, alice):
    create_task(client, alice, title="one", tag_id=general_tag_id(client, alice))
    create_task(client, alice, title="two", status="done")

    response = client.get("/tasks/export", headers=alice["headers"], params={"workspace_id": alice["workspace_id"]})
    assert response.status_code == 200
    rows = response.json()
    assert [r["title"] for r in rows] == ["one", "two"]
    assert rows[0]["tag_name"] == "General"
