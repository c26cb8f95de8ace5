"""Tests for the HTTP surface, with the collaborator factory patched out."""

import asyncio

import httpx
import pytest
from conftest import FakeCollaborator
from fastapi.testclient import TestClient

from appflow import config
from server import sessions
from server.app import app


@pytest.fixture
def fake(monkeypatch) -> FakeCollaborator:
    collaborator = FakeCollaborator()
    monkeypatch.setattr(sessions, "collaborator_factory", lambda credentials, settings: collaborator)
    return collaborator


@pytest.fixture
def client(fake):
    sessions.clear_sessions()
    with TestClient(app) as test_client:
        yield test_client
    sessions.clear_sessions()


def _create(client) -> str:
    return _session_id(client.post(
        "/api/sessions",
        json={"provider": "gemini", "api_key": "test-key", "model": "gemini-2.5-flash"},
    ))


def _session_id(response) -> str:
    assert response.status_code == 200
    return response.json()["session_id"]


class TestSessionLifecycle:
    """Test the happy path through every stage."""

    def test_full_flow(self, client, fake):
        session_id = _create(client)
        base = f"/api/sessions/{session_id}"

        assert client.put(f"{base}/idea", json={"idea": "Recipe app"}).status_code == 200
        view = client.post(f"{base}/features/generate").json()
        assert view["stage"] == "features"
        assert len(view["features"]) == 3

        toggled = client.post(f"{base}/features/f-1/toggle").json()
        assert toggled["selected"] is False

        view = client.post(f"{base}/workflow/generate").json()
        assert view["stage"] == "workflow"
        assert view["graph"]["version"] == 1
        assert [f.title for f in fake.calls[-1][1][1]] == ["Login", "Search"]

        view = client.post(f"{base}/workflow/extend", json={"request": "Add profile"}).json()
        assert len(view["graph"]["nodes"]) == 4
        assert view["graph"]["version"] == 1

        view = client.post(f"{base}/summary", json={"summary_length": "detailed"}).json()
        assert view["stage"] == "summary"
        assert view["description"] == fake.description
        assert view["config"]["summary_length"] == "detailed"

    def test_api_key_never_echoed(self, client):
        session_id = _create(client)
        body = client.get(f"/api/sessions/{session_id}").json()
        assert "test-key" not in str(body)
        assert body["provider"] == "gemini"

    def test_missing_key_is_rejected(self, client, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        response = client.post("/api/sessions", json={"provider": "gemini", "model": "m"})
        assert response.status_code == 400

    def test_unknown_session(self, client):
        assert client.get("/api/sessions/nope").status_code == 404

    def test_delete_session(self, client):
        session_id = _create(client)
        assert client.delete(f"/api/sessions/{session_id}").status_code == 200
        assert client.get(f"/api/sessions/{session_id}").status_code == 404


class TestGraphEditing:
    """Test manual graph edits over HTTP."""

    def setup_session(self, client) -> str:
        session_id = _create(client)
        base = f"/api/sessions/{session_id}"
        client.put(f"{base}/idea", json={"idea": "Recipe app"})
        client.post(f"{base}/features/generate")
        client.post(f"{base}/workflow/generate")
        return base

    def test_node_and_edge_crud(self, client):
        base = self.setup_session(client)

        node = client.post(
            f"{base}/graph/nodes",
            json={"kind": "userAction", "position": {"x": 50, "y": 60}},
        ).json()
        assert node["label"] == "New Node"

        edge = client.post(
            f"{base}/graph/edges", json={"source": "1", "target": node["id"]}
        ).json()
        patched = client.patch(
            f"{base}/graph/nodes/{node['id']}",
            json={"label": "Tap save", "position": {"x": 10, "y": 10}},
        ).json()
        assert patched["label"] == "Tap save"
        assert patched["position"] == {"x": 10.0, "y": 10.0}

        deleted = client.delete(f"{base}/graph/nodes/{node['id']}").json()
        assert deleted["deleted_edges"] == [edge["id"]]

    def test_dangling_edge_is_400(self, client):
        base = self.setup_session(client)
        response = client.post(f"{base}/graph/edges", json={"source": "1", "target": "zzz"})
        assert response.status_code == 400

    def test_missing_node_is_404(self, client):
        base = self.setup_session(client)
        assert client.patch(f"{base}/graph/nodes/zzz", json={"label": "x"}).status_code == 404

    def test_selection(self, client):
        base = self.setup_session(client)
        selection = client.put(f"{base}/graph/selection", json={"element_id": "e1"}).json()
        assert selection == {"element_id": "e1", "element_kind": "edge"}
        assert client.put(f"{base}/graph/selection", json={}).json() is None


class TestErrorMapping:
    """Test how core failures map onto status codes."""

    def test_collaborator_failure_is_502(self, client, fake):
        session_id = _create(client)
        base = f"/api/sessions/{session_id}"
        client.put(f"{base}/idea", json={"idea": "Recipe app"})
        fake.fail = True

        response = client.post(f"{base}/features/generate")

        assert response.status_code == 502
        assert client.get(base).json()["stage"] == "ideation"

    def test_transition_error_is_400(self, client):
        session_id = _create(client)
        response = client.post(f"/api/sessions/{session_id}/workflow/generate")
        assert response.status_code == 400

    def test_navigate_and_restart(self, client):
        session_id = _create(client)
        base = f"/api/sessions/{session_id}"
        client.put(f"{base}/idea", json={"idea": "Recipe app"})
        client.post(f"{base}/features/generate")

        assert client.post(f"{base}/navigate", json={"stage": "summary"}).status_code == 400
        assert client.post(f"{base}/navigate", json={"stage": "ideation"}).json()["stage"] == "ideation"

        view = client.post(f"{base}/restart").json()
        assert view["stage"] == "ideation"
        assert view["features"] == []
        assert view["idea"] == ""

    def test_busy_pipeline_is_409(self, fake):
        """A second generation request while one is outstanding gets 409."""
        sessions.clear_sessions()

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                session_id = _session_id(await client.post(
                    "/api/sessions",
                    json={"provider": "gemini", "api_key": "test-key", "model": "gemini-2.5-flash"},
                ))
                base = f"/api/sessions/{session_id}"
                await client.put(f"{base}/idea", json={"idea": "Recipe app"})

                fake.gate = asyncio.Event()
                first = asyncio.create_task(client.post(f"{base}/features/generate"))
                for _ in range(200):
                    if fake.calls:
                        break
                    await asyncio.sleep(0.01)

                second = await client.post(f"{base}/features/generate")
                fake.gate.set()
                return (await first).status_code, second.status_code

        first_status, second_status = asyncio.run(scenario())
        sessions.clear_sessions()

        assert second_status == 409
        assert first_status == 200
        assert fake.call_names() == ["generate_features"]

    def test_idea_change_after_ideation_is_400(self, client):
        session_id = _create(client)
        base = f"/api/sessions/{session_id}"
        client.put(f"{base}/idea", json={"idea": "Recipe app"})
        client.post(f"{base}/features/generate")

        response = client.put(f"{base}/idea", json={"idea": "Chat app"})

        assert response.status_code == 400
        assert client.get(base).json()["idea"] == "Recipe app"


class TestModels:
    """Test the model catalogue and per-provider defaults."""

    def test_lists_models_per_provider(self, client):
        body = client.get("/api/models").json()
        assert body["gemini"]["default"] == "gemini-2.5-flash"
        assert "gemini-3-pro-preview" in body["gemini"]["models"]
        assert body["openai"]["default"] == "gpt-4o-mini"

    def test_other_provider_gets_its_own_default_model(self, client, monkeypatch):
        """Without a model, an OpenAI session does not inherit the Gemini default."""
        monkeypatch.setattr(config, "_settings", config.Settings())
        response = client.post("/api/sessions", json={"provider": "openai", "api_key": "k"})
        assert response.status_code == 200
        assert response.json()["model"] == "gpt-4o-mini"
