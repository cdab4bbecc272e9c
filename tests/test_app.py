import pytest
from fastapi.testclient import TestClient

from hashnotes.app import app
from hashnotes.db import session_scope
from hashnotes.models import Note


@pytest.fixture()
def client(db):
    return TestClient(app)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"


def test_create_and_read_back(client):
    r = client.post("/api/notes", json={"title": "", "note": "Plan for #trip and #packing\n#trip"})
    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "Plan for #trip and #packing"
    assert body["tags"] == ["trip", "packing"]

    r = client.get(f"/api/notes/{body['id']}")
    assert r.status_code == 200
    assert r.json()["tags"] == ["trip", "packing"]


def test_create_rejects_blank_body(client):
    r = client.post("/api/notes", json={"title": "t", "note": " "})
    assert r.status_code == 400


def test_search_params(client, add_note):
    add_note("n_a", "Zebra", "#zoo animals", age=3)
    add_note("n_b", "Query term here", "#zoo", age=2, favorite=True)
    add_note("n_c", "Other", "query in body", age=1, archive=True)

    r = client.get("/api/notes", params={"q": "query"})
    assert [n["id"] for n in r.json()] == ["n_b"]

    r = client.get("/api/notes", params={"q": "query", "archived": "on"})
    assert [n["id"] for n in r.json()] == ["n_b", "n_c"]

    r = client.get("/api/notes", params={"tag": "zoo"})
    assert [n["id"] for n in r.json()] == ["n_b", "n_a"]

    r = client.get("/api/notes", params={"favorites": "1"})
    assert [n["id"] for n in r.json()] == ["n_b"]

    r = client.get("/api/notes")
    assert [n["id"] for n in r.json()] == ["n_b", "n_a"]


def test_tags_endpoint(client, add_note):
    add_note("n_a", "A", "#zoo #art")
    add_note("n_b", "B", "#zoo")
    r = client.get("/api/tags")
    assert r.json() == [
        {"tag_name": "art", "note_count": 1},
        {"tag_name": "zoo", "note_count": 2},
    ]


def test_update_and_delete(client):
    note_id = client.post("/api/notes", json={"title": "t", "note": "#old"}).json()["id"]

    r = client.put(f"/api/notes/{note_id}", json={"note": "#new body", "archive": True})
    assert r.status_code == 200
    assert r.json()["tags"] == ["new"]
    assert r.json()["archive"] is True

    assert client.delete(f"/api/notes/{note_id}").status_code == 200
    assert client.get(f"/api/notes/{note_id}").status_code == 404
    assert client.delete(f"/api/notes/{note_id}").status_code == 404
    assert client.put(f"/api/notes/{note_id}", json={"title": "x"}).status_code == 404


def test_import(client):
    payload = {
        "id": "n_ext1",
        "title": "From elsewhere",
        "note": "old #archive-me",
        "archive": True,
        "created_at": "2019-03-01T10:00:00+00:00",
        "modified_at": "2019-03-02T10:00:00+00:00",
    }
    r = client.post("/api/import", json=payload)
    assert r.status_code == 201
    assert r.json()["tags"] == ["archive-me"]
    assert r.json()["modified_at"].startswith("2019-03-02T10:00:00")

    assert client.post("/api/import", json=payload).status_code == 409


def test_refresh_tags_runs_in_background(client, add_note):
    add_note("n_a", "A", "#fresh")
    with session_scope() as s:
        n = s.get(Note, "n_a")
        n.tags_csv = "stale"
        s.add(n)

    r = client.post("/api/notes/refresh-tags")
    assert r.status_code == 202
    assert r.json()["status"] == "queued"
    assert client.get("/api/notes/n_a").json()["tags"] == ["fresh"]


def test_time_is_per_request(client):
    r = client.get("/api/time", params={"tz": "Europe/Berlin"})
    assert r.status_code == 200
    assert r.json()["time_location"] == "Europe/Berlin"

    r = client.get("/api/time")
    assert r.json()["time_location"] == "America/Los_Angeles"

    assert client.get("/api/time", params={"tz": "Not/AZone"}).status_code == 400


def test_random_and_index(client):
    assert client.get("/api/notes/random").json() is None
    client.post("/api/notes", json={"title": "t", "note": "x"})
    assert client.get("/api/notes/random").json()["title"] == "t"
    r = client.get("/")
    assert r.status_code == 200
    assert "Hashnotes" in r.text
