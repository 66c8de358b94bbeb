"""Tests for the document, suggestion and vote endpoints."""

from chatbot.core.config import settings
from chatbot.models import Message, Suggestion

USER_ID = settings.default_user_id


def _save(client, doc_id, content, title="Draft", kind="text"):
    return client.post(
        "/api/document",
        params={"id": doc_id},
        json={"content": content, "title": title, "kind": kind},
    )


# --- Documents ---


def test_save_document_returns_new_version(client):
    response = _save(client, "doc-1", "v1")
    assert response.status_code == 200
    [doc] = response.json()
    assert doc["id"] == "doc-1"
    assert doc["content"] == "v1"
    assert doc["userId"] == USER_ID


def test_document_versions_in_order(client):
    _save(client, "doc-1", "v1")
    _save(client, "doc-1", "v2")

    response = client.get("/api/document", params={"id": "doc-1"})
    assert response.status_code == 200
    assert [d["content"] for d in response.json()] == ["v1", "v2"]


def test_get_document_requires_id(client):
    assert client.get("/api/document").status_code == 400


def test_get_document_not_found(client):
    response = client.get("/api/document", params={"id": "missing"})
    assert response.status_code == 404
    assert response.json()["code"] == "not_found:document"


def test_save_document_requires_id(client):
    response = client.post("/api/document", json={"content": "x", "title": "t", "kind": "text"})
    assert response.status_code == 400


def test_save_document_rejects_unknown_kind(client):
    assert _save(client, "doc-1", "x", kind="video").status_code == 422


def test_delete_versions_after_timestamp(client):
    _save(client, "doc-1", "v1")
    _save(client, "doc-1", "v2")
    _save(client, "doc-1", "v3")
    first = client.get("/api/document", params={"id": "doc-1"}).json()[0]

    response = client.delete("/api/document", params={"id": "doc-1", "timestamp": first["createdAt"]})
    assert response.status_code == 200
    assert sorted(d["content"] for d in response.json()) == ["v2", "v3"]

    remaining = client.get("/api/document", params={"id": "doc-1"}).json()
    assert [d["content"] for d in remaining] == ["v1"]


def test_delete_versions_rejects_bad_timestamp(client):
    response = client.delete("/api/document", params={"id": "doc-1", "timestamp": "yesterday"})
    assert response.status_code == 400


def test_delete_versions_requires_timestamp(client):
    assert client.delete("/api/document", params={"id": "doc-1"}).status_code == 400


def test_created_at_is_utc_in_post_and_get(client):
    [posted] = _save(client, "doc-1", "v1").json()
    [listed] = client.get("/api/document", params={"id": "doc-1"}).json()
    assert posted["createdAt"] == listed["createdAt"]
    assert listed["createdAt"].endswith("+00:00")


# --- Suggestions ---


def test_suggestions_for_document(client, store):
    document = store.save_document("doc-1", "Draft", "text", "Some text.", USER_ID)
    store.save_suggestions([
        Suggestion(
            document_id="doc-1",
            document_created_at=document.created_at,
            original_text="Some text.",
            suggested_text="Some better text.",
            description="Clearer",
            user_id=USER_ID,
        )
    ])

    response = client.get("/api/suggestions", params={"documentId": "doc-1"})
    assert response.status_code == 200
    [suggestion] = response.json()
    assert suggestion["originalText"] == "Some text."
    assert suggestion["suggestedText"] == "Some better text."
    assert suggestion["isResolved"] is False


def test_suggestions_empty(client):
    assert client.get("/api/suggestions", params={"documentId": "doc-1"}).json() == []


def test_suggestions_require_document_id(client):
    assert client.get("/api/suggestions").status_code == 400


# --- Votes ---


def _seed_chat_with_reply(store):
    store.save_chat("chat-1", USER_ID, "Chat", "private")
    store.save_messages([
        Message(id="m-user", chat_id="chat-1", role="user", parts=[{"type": "text", "text": "hi"}], attachments=[]),
        Message(id="m-reply", chat_id="chat-1", role="assistant", parts=[{"type": "text", "text": "hello"}], attachments=[]),
    ])


def test_vote_and_revote(client, store):
    _seed_chat_with_reply(store)

    response = client.patch("/api/vote", json={"chatId": "chat-1", "messageId": "m-reply", "type": "up"})
    assert response.status_code == 200
    assert response.json() == {"message": "Message voted"}
    client.patch("/api/vote", json={"chatId": "chat-1", "messageId": "m-reply", "type": "down"})

    votes = client.get("/api/vote", params={"chatId": "chat-1"}).json()
    assert votes == [{"chatId": "chat-1", "messageId": "m-reply", "isUpvoted": False}]


def test_vote_unknown_chat(client):
    response = client.patch("/api/vote", json={"chatId": "missing", "messageId": "m", "type": "up"})
    assert response.status_code == 404
    assert client.get("/api/vote", params={"chatId": "missing"}).status_code == 404


def test_vote_unknown_message_is_database_error(client, store):
    _seed_chat_with_reply(store)
    response = client.patch("/api/vote", json={"chatId": "chat-1", "messageId": "missing", "type": "up"})
    assert response.status_code == 400
    assert response.json() == {"code": "bad_request:database", "message": "Failed to vote message"}


def test_vote_rejects_unknown_type(client, store):
    _seed_chat_with_reply(store)
    response = client.patch("/api/vote", json={"chatId": "chat-1", "messageId": "m-reply", "type": "meh"})
    assert response.status_code == 422


def test_list_votes_requires_chat_id(client):
    assert client.get("/api/vote").status_code == 400
