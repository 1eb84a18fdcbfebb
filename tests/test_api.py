"""End-to-end requests against a real SQLite board."""

import pytest


@pytest.fixture
def client(store, api_client):
    return api_client


def _create(client, title, column="today"):
    resp = client.post("/api/tasks", json={"title": title, "column_name": column})
    assert resp.status_code == 201
    return resp.json()


class TestBoardFlow:
    def test_health_counts_active_tasks(self, client):
        _create(client, "A")
        resp = client.get("/api/health")
        assert resp.json() == {"status": "ok", "active_tasks": 1}

    def test_move_between_columns(self, client):
        t0 = _create(client, "T0")
        _create(client, "T1")
        _create(client, "M0", "tomorrow")
        resp = client.put(f"/api/tasks/{t0['id']}/move", json={"column_name": "tomorrow", "position": 0})
        assert resp.status_code == 200
        board = client.get("/api/tasks/board").json()
        assert [(t["title"], t["position"]) for t in board["today"]] == [("T1", 0)]
        assert [(t["title"], t["position"]) for t in board["tomorrow"]] == [("T0", 0), ("M0", 1)]

    def test_negative_position_is_conflict(self, client):
        t0 = _create(client, "T0")
        resp = client.put(f"/api/tasks/{t0['id']}/move", json={"column_name": "today", "position": -1})
        assert resp.status_code == 409

    def test_checklist_round(self, client):
        task = _create(client, "Costco")
        added = client.post(f"/api/tasks/{task['id']}/items", json={"title": "Milk"}).json()
        assert added["kind"] == "checklist"
        item_id = added["items"][0]["id"]
        removed = client.delete(f"/api/tasks/{task['id']}/items/{item_id}").json()
        assert removed["kind"] == "card"

    def test_missing_task(self, client):
        resp = client.get("/api/tasks/nope")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "not_found"


class TestNoteFlow:
    def test_convert_and_audit(self, client):
        note = client.post("/api/notes", json={"content": "buy milk"}).json()
        resp = client.post(f"/api/notes/{note['id']}/convert", json={"title": "Buy milk"})
        assert resp.status_code == 201
        task = resp.json()["task"]
        assert client.get(f"/api/notes/{note['id']}").json()["archived"] is True
        assert client.get("/api/notes").json() == []

        again = client.post(f"/api/notes/{note['id']}/convert")
        assert again.status_code == 409

        entries = client.get(f"/api/audit?entity_id={task['id']}").json()
        assert [e["action"] for e in entries] == ["create_task"]

    def test_converted_note_cannot_be_deleted(self, client):
        note = client.post("/api/notes", json={"content": "buy milk"}).json()
        client.post(f"/api/notes/{note['id']}/convert")
        assert client.delete(f"/api/notes/{note['id']}").status_code == 409
        assert client.put(f"/api/notes/{note['id']}/restore").status_code == 409


class TestAgentReads:
    def test_search_and_context(self, client):
        task = _create(client, "Buy milk")
        client.post(f"/api/tasks/{task['id']}/items", json={"title": "Oat"})
        hits = client.get("/api/search?q=milk&summary=true").json()
        assert [t["id"] for t in hits["results"]["tasks"]] == [task["id"]]
        context = client.get(f"/api/tasks/{task['id']}/context").json()
        assert context["column"] == "Today"
        assert context["checklist"] == [{"text": "Oat", "done": False}]

    def test_summary(self, client):
        _create(client, "A")
        _create(client, "H", "horizon")
        summary = client.get("/api/tasks/summary").json()
        assert summary["total"] == 2
        assert list(summary["by_column"]) == ["Today", "Horizon"]
