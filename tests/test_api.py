"""Tests for the REST routes under /api/commands."""

from command_api.config import Settings
from command_api.mcp_server import build_app
from starlette.testclient import TestClient


def create(client, body) -> dict:
    response = client.post("/api/commands", json=body)
    assert response.status_code == 201
    return response.json()


def test_list_is_empty_on_empty_store(client):
    response = client.get("/api/commands")

    assert response.status_code == 200
    assert response.json() == []


def test_list_sets_environment_header(client):
    response = client.get("/api/commands")

    assert response.headers["Environment"] == "UnitTest"


def test_list_returns_every_created_command(client, sample):
    for i in range(3):
        create(client, {**sample, "howTo": f"Task {i}"})

    items = client.get("/api/commands").json()

    assert sorted(item["howTo"] for item in items) == ["Task 0", "Task 1", "Task 2"]


def test_create_then_get_scenario(client, sample):
    response = client.post("/api/commands", json=sample)

    assert response.status_code == 201
    body = response.json()
    assert body == {"id": 1, **sample}
    assert response.headers["Location"].endswith("/api/commands/1")

    fetched = client.get("/api/commands/1")
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_ignores_body_id(client, sample):
    body = create(client, {**sample, "id": 500})

    assert body["id"] == 1


def test_create_without_how_to_is_bad_request(client):
    response = client.post("/api/commands", json={"platform": "Linux"})

    assert response.status_code == 400
    assert response.content == b""
    assert client.get("/api/commands").json() == []


def test_create_with_malformed_json_is_bad_request(client):
    response = client.post(
        "/api/commands", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400


def test_create_with_non_object_body_is_bad_request(client):
    response = client.post("/api/commands", json=["howTo"])

    assert response.status_code == 400


def test_create_with_uncoercible_id_is_bad_request(client, sample):
    response = client.post("/api/commands", json={**sample, "id": "abc"})

    assert response.status_code == 400


def test_get_missing_is_not_found_with_empty_body(client):
    response = client.get("/api/commands/0")

    assert response.status_code == 404
    assert response.content == b""


def test_update_replaces_command(client, sample):
    created = create(client, {**sample, "howTo": "A"})

    response = client.put(
        f"/api/commands/{created['id']}", json={**created, "howTo": "B"}
    )

    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"/api/commands/{created['id']}").json()["howTo"] == "B"


def test_update_with_mismatched_id_is_bad_request(client, sample):
    created = create(client, {**sample, "howTo": "A"})

    response = client.put(
        f"/api/commands/{created['id']}",
        json={**created, "id": created["id"] + 1, "howTo": "B"},
    )

    assert response.status_code == 400
    assert client.get(f"/api/commands/{created['id']}").json()["howTo"] == "A"


def test_update_absent_row_is_not_found(client, sample):
    response = client.put("/api/commands/3", json={**sample, "id": 3})

    assert response.status_code == 404


def test_delete_returns_deleted_command(client, sample):
    created = create(client, sample)

    response = client.delete(f"/api/commands/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created
    assert client.get(f"/api/commands/{created['id']}").status_code == 404
    assert client.get("/api/commands").json() == []


def test_delete_missing_is_not_found_and_store_unchanged(client, sample):
    create(client, sample)

    response = client.delete("/api/commands/42")

    assert response.status_code == 404
    assert len(client.get("/api/commands").json()) == 1


def test_non_integer_id_is_bad_request(client, sample):
    assert client.get("/api/commands/abc").status_code == 400
    assert client.put("/api/commands/abc", json=sample).status_code == 400
    assert client.delete("/api/commands/abc").status_code == 400


def test_oversized_id_is_not_found(client, sample):
    huge = 10**20
    create(client, sample)

    assert client.get(f"/api/commands/{huge}").status_code == 404
    assert client.put(f"/api/commands/{huge}", json={**sample, "id": huge}).status_code == 404
    assert client.delete(f"/api/commands/{huge}").status_code == 404
    assert len(client.get("/api/commands").json()) == 1


def test_negative_id_is_not_found(client):
    assert client.get("/api/commands/-1").status_code == 404


def test_health_check(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_unhandled_errors_are_server_errors(sample):
    app = build_app(Settings(_env_file=None, environment="Production"))
    client = TestClient(app, raise_server_exceptions=False)
    created = create(client, sample)

    # A null howTo passes the id check and fails at commit, which is not caught
    response = client.put(
        f"/api/commands/{created['id']}", json={"id": created["id"], "howTo": None}
    )

    assert response.status_code == 500


def test_development_environment_enables_debug():
    app = build_app(Settings(_env_file=None, environment="Development"))

    assert app.debug is True
