"""API tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from story_engine.app import create_app
from story_engine.llm import EchoChatLLM, LLMError

U1 = {"X-User-Id": "u1"}
U2 = {"X-User-Id": "u2"}


class FailingLLM:
    async def chat(self, model, messages, options=None):
        raise LLMError("Cannot connect to LLM backend at http://localhost:11434")


@pytest.fixture
def app(tmp_path):
    return create_app(data_dir=tmp_path, llm=EchoChatLLM())


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def template(client):
    resp = client.post(
        "/api/templates",
        json={"name": "Alice", "age": 25, "personality_text": "Brave, curious", "tags": "fantasy, hero"},
        headers=U1,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def adventure(client, template):
    resp = client.post(
        "/api/adventures",
        json={"template_id": template["id"], "title": "Down the Rabbit Hole"},
        headers=U1,
    )
    assert resp.status_code == 201
    return resp.json()


# ── Parse / render ───────────────────────────────────────────


def test_parse_appearance(client):
    resp = client.post("/api/parse/appearance", json={"text": "Hair: brown, long; Feet: smelly, stinky"})
    assert resp.status_code == 200
    assert resp.json() == {"hair.color": ["Brown", "Long"], "feet.appearance": ["Smelly", "Stinky"]}


def test_parse_unknown_type(client):
    assert client.post("/api/parse/weather", json={"text": "rain"}).status_code == 404


def test_render(client):
    resp = client.post("/api/render", json={"data": {"hair.color": ["Brown"], "body.appearance": ["Tall"]}})
    assert resp.json() == {"text": "Hair (color): Brown; Body: Tall"}


# ── Templates ────────────────────────────────────────────────


def test_create_template_structures_text(template):
    assert template["personality"] == {"personality.traits": ["Brave", "Curious"]}
    assert template["personality_text"] == "Personality: Brave, Curious"
    assert template["appearance"] == {}
    assert template["appearance_text"] == ""
    assert template["tags"] == ["Fantasy", "Hero"]


def test_create_template_requires_user(client):
    assert client.post("/api/templates", json={"name": "Alice"}).status_code == 401


def test_get_template_is_private(client, template):
    assert client.get(f"/api/templates/{template['id']}", headers=U1).status_code == 200
    assert client.get(f"/api/templates/{template['id']}", headers=U2).status_code == 404


def test_update_template(client, template):
    resp = client.patch(
        f"/api/templates/{template['id']}",
        json={"appearance_text": "Hair: silver"},
        headers=U1,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["appearance"] == {"hair.color": ["Silver"]}
    assert body["personality"] == {"personality.traits": ["Brave", "Curious"]}


def test_update_missing_template(client):
    assert client.patch("/api/templates/nope", json={"age": 3}, headers=U1).status_code == 404


def test_delete_template(client, template):
    assert client.delete(f"/api/templates/{template['id']}", headers=U2).status_code == 404
    assert client.delete(f"/api/templates/{template['id']}", headers=U1).json() == {"ok": True}


# ── Adventures ───────────────────────────────────────────────


def test_start_adventure_unknown_template(client):
    resp = client.post("/api/adventures", json={"template_id": "nope", "title": "x"}, headers=U1)
    assert resp.status_code == 404


def test_get_adventure(client, adventure):
    assert client.get(f"/api/adventures/{adventure['id']}", headers=U1).json()["title"] == "Down the Rabbit Hole"
    assert client.get(f"/api/adventures/{adventure['id']}", headers=U2).status_code == 404


def test_context(client, adventure):
    resp = client.get(f"/api/adventures/{adventure['id']}/context", headers=U1)
    assert resp.json() == {"context": "You are Alice, age 25.\nPersonality: Personality: Brave, Curious"}


def test_context_other_user(client, adventure):
    assert client.get(f"/api/adventures/{adventure['id']}/context", headers=U2).status_code == 404


def test_state_update_changes_context(client, adventure):
    adv_id = adventure["id"]
    client.get(f"/api/adventures/{adv_id}/context", headers=U1)

    resp = client.patch(
        f"/api/adventures/{adv_id}/state",
        json={"updates": {"mood": "anxious", "location": "the docks"}},
        headers=U1,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["updates"]["mood"]["value"] == {"personality.traits": ["Anxious"]}
    assert body["updates"]["location"]["value"] == "the docks"

    context = client.get(f"/api/adventures/{adv_id}/context", headers=U1).json()["context"]
    assert context.endswith("\n\nCurrent state changes: mood: Personality: Anxious, location: the docks")

    state = client.get(f"/api/adventures/{adv_id}/state", headers=U1).json()
    assert set(state["state_updates"]) == {"mood", "location"}


def test_state_update_other_user(client, adventure):
    resp = client.patch(
        f"/api/adventures/{adventure['id']}/state",
        json={"updates": {"mood": "anxious"}},
        headers=U2,
    )
    assert resp.status_code == 404


def test_chat(client, adventure):
    adv_id = adventure["id"]
    resp = client.post(f"/api/adventures/{adv_id}/chat", json={"message": "Hello"}, headers=U1)
    assert resp.status_code == 200
    assert resp.json()["role"] == "assistant"
    assert resp.json()["content"] == "Hello"

    messages = client.get(f"/api/adventures/{adv_id}/messages", headers=U1).json()
    assert [m["role"] for m in messages] == ["user", "assistant"]


def test_chat_missing_adventure(client):
    assert client.post("/api/adventures/nope/chat", json={"message": "Hi"}, headers=U1).status_code == 404


def test_chat_llm_failure(tmp_path):
    client = TestClient(create_app(data_dir=tmp_path, llm=FailingLLM()))
    template = client.post("/api/templates", json={"name": "Alice"}, headers=U1).json()
    adventure = client.post(
        "/api/adventures", json={"template_id": template["id"], "title": "x"}, headers=U1
    ).json()
    resp = client.post(f"/api/adventures/{adventure['id']}/chat", json={"message": "Hi"}, headers=U1)
    assert resp.status_code == 502


def test_delete_adventure(client, adventure):
    adv_id = adventure["id"]
    assert client.delete(f"/api/adventures/{adv_id}", headers=U1).json() == {"ok": True}
    assert client.get(f"/api/adventures/{adv_id}", headers=U1).status_code == 404
