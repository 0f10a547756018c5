"""End-to-end tests of the HTTP API in demo mode (no provider keys)."""

import pytest
from conftest import make_settings
from fastapi.testclient import TestClient

import study_assistant.core.config as config_module
from study_assistant.agents.prompts import DEMO_MODE_MARKER
from study_assistant.api.deps import session_registry
from study_assistant.db.database import reset_database
from study_assistant.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "SETTINGS_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(config_module, "settings", make_settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        storage_dir=str(tmp_path / "objects"),
        chroma_dir=str(tmp_path / "chroma"),
    ))
    reset_database()
    session_registry.clear()

    with TestClient(app) as test_client:
        yield test_client

    session_registry.clear()
    reset_database()


def create_folder(client, name):
    response = client.post("/api/folders", json={"name": name})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_folder_lifecycle(client):
    folder = create_folder(client, "Econ")

    response = client.post(
        f"/api/folders/{folder['id']}/documents",
        files=[
            ("files", ("notes.txt", b"Externalities", "text/plain")),
            ("files", ("tool.exe", b"\x00", "application/octet-stream")),
        ],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["failed_count"] == 1
    assert [d["parse_status"] for d in body["documents"]] == ["success", "failed"]

    folders = client.get("/api/folders").json()["folders"]
    assert [d["file_name"] for d in folders[0]["documents"]] == ["notes.txt", "tool.exe"]

    stats = client.get("/api/documents/stats").json()
    assert stats == {"document_count": 2, "total_bytes": len(b"Externalities") + 1}

    document_id = body["documents"][0]["id"]
    assert client.delete(f"/api/documents/{document_id}").status_code == 200
    assert client.delete(f"/api/documents/{document_id}").status_code == 404

    assert client.delete(f"/api/folders/{folder['id']}").status_code == 200
    assert client.get("/api/folders").json()["folders"] == []


def test_blank_folder_name_is_400(client):
    assert client.post("/api/folders", json={"name": " "}).status_code == 400


def test_upload_to_missing_folder_is_404(client):
    response = client.post(
        "/api/folders/missing/documents",
        files=[("files", ("a.txt", b"a", "text/plain"))],
    )
    assert response.status_code == 404


def test_context_preview(client):
    folder = create_folder(client, "Econ")
    client.post(
        f"/api/folders/{folder['id']}/documents",
        files=[("files", ("notes.txt", b"x" * 1000, "text/plain"))],
    )

    body = client.get("/api/documents/context", params={"max_chars": 100}).json()

    assert body["context"].startswith("【Econ / notes.txt】\n")
    assert body["length"] == 100


def test_search_without_embedding_key_is_400(client):
    response = client.post("/api/documents/search", json={"query": "carbon"})
    assert response.status_code == 400


def test_chat_turn_in_demo_mode(client):
    folder = create_folder(client, "Econ")
    client.post(
        f"/api/folders/{folder['id']}/documents",
        files=[("files", ("notes.txt", b"Pigouvian taxes", "text/plain"))],
    )

    response = client.post("/api/chat/sessions/s1/messages", json={"message": "Explain carbon taxes"})

    assert response.status_code == 200
    body = response.json()
    assert DEMO_MODE_MARKER in body["reply"]["content"]
    assert "content detected" in body["reply"]["content"]
    assert [m["role"] for m in body["messages"]] == ["user", "assistant"]
    assert body["conversation_id"]

    persisted = client.get(f"/api/chat/conversations/{body['conversation_id']}/messages").json()
    assert [m["content"] for m in persisted["messages"]][0] == "Explain carbon taxes"
    assert len(persisted["messages"]) == 2

    transcript = client.get("/api/chat/sessions/s1").json()
    assert transcript["status"] == "idle"
    assert len(transcript["messages"]) == 2


def test_empty_chat_message_is_400(client):
    response = client.post("/api/chat/sessions/s1/messages", json={"message": "  "})

    assert response.status_code == 400
    assert client.get("/api/chat/sessions/s1").json()["messages"] == []


def test_new_chat_and_restore(client):
    first = client.post("/api/chat/sessions/s1/messages", json={"message": "Q1"}).json()

    assert client.delete("/api/chat/sessions/s1").status_code == 200
    assert session_registry.get("s1") is None
    assert client.get("/api/chat/sessions/s1").json()["messages"] == []

    restored = client.post(f"/api/chat/sessions/s1/restore/{first['conversation_id']}")
    assert restored.status_code == 200
    assert [m["content"] for m in restored.json()["messages"]][0] == "Q1"

    assert client.post("/api/chat/sessions/s1/restore/unknown").status_code == 404


def test_settings_masks_and_updates(client):
    settings = client.get("/api/settings").json()
    assert settings["active_provider"] == "deepseek"
    assert settings["openai_api_key"] == ""

    response = client.post("/api/settings", json={"active_provider": "nope"})
    assert response.status_code == 400

    response = client.post("/api/settings", json={"active_provider": "gemini", "gemini_api_key": "AIzaSecretKey123"})
    assert response.status_code == 200
    body = response.json()
    assert body["active_provider"] == "gemini"
    assert body["gemini_api_key"] == "AIza********y123"


def test_connection_check_reports_demo_mode(client):
    body = client.post("/api/settings/test").json()

    assert body["store"] is True
    assert body["provider"] == "deepseek"
    assert body["demo_mode"] is True
    assert body["provider_ready"] is False
