import pytest

from conftest import make_user
from src.domain.entities.conversation import Conversation
from src.domain.exceptions import ExternalServiceError
from src.domain.value_objects.conversation_id import ConversationId
from src.middleware.frame_headers import FRAME_ANCESTORS_CSP


def _seed_conversation(store, owner="recUser00000000001", title="Chat 3/10/2026"):
    conversation_id = ConversationId("f" * 32 if owner == "recUser00000000001" else "e" * 32)
    store.conversations.conversations[conversation_id.value] = Conversation.create(
        conversation_id, owner, title
    )
    return conversation_id


# ==================== ROOT / ERRORS ====================


def test_root(client):
    res = client.get("/")

    assert res.status_code == 200
    assert res.json() == {"message": "VADIY chat server is running."}


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/does-not-exist")
    body = res.json()

    assert res.status_code == 404
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"


def test_correlation_id_is_echoed(client):
    res = client.get("/health", headers={"X-Correlation-ID": "corr-123"})

    assert res.headers["X-Correlation-ID"] == "corr-123"


# ==================== HEALTH ====================


def test_health(client):
    res = client.get("/health")

    assert res.status_code == 200
    assert res.json() == {"status": "healthy"}


def test_database_health_reports_tables(client):
    res = client.get("/health/database")
    body = res.json()

    assert res.status_code == 200
    assert body["success"] is True
    tables = body["data"]["tables"]
    assert tables["accessible"] == 2
    assert tables["total"] == 3
    assert tables["status"]["Resources"] is False
    assert tables["discovered"] == ["User Profiles"]
    assert body["data"]["summary"]["percentageAccessible"] == 67
    assert body["data"]["summary"]["coreTablesFound"] is True


def test_database_health_without_configuration(client, store):
    store.inspector.configured = False

    res = client.get("/health/database")
    body = res.json()

    assert res.status_code == 500
    assert body["success"] is False
    assert body["error"] == "Missing Airtable configuration"
    assert set(body["details"]) == {"hasToken", "hasBaseId"}


def test_ai_health_probes_providers(client, store):
    res = client.get("/health/ai")
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["providers"]["openai"] is True
    assert data["healthy"] is True
    assert store.openai.completions.calls[0]["max_tokens"] == 5


def test_metrics_endpoint(client):
    res = client.get("/metrics")

    assert res.status_code == 200
    assert "text/plain" in res.headers["content-type"]


# ==================== EMBED ====================


def test_embed_page_is_frameable(client):
    res = client.get("/embed")

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert res.headers["X-Frame-Options"] == "ALLOWALL"
    assert res.headers["Content-Security-Policy"] == "frame-ancestors *;"
    assert res.headers["Access-Control-Allow-Origin"] == "*"
    assert 'src="http://testserver/embed/chat"' in res.text


def test_chat_responses_get_frame_ancestors(client, session_token):
    res = client.post(
        "/chat/send-message", json={"message": "hello", "sessionToken": session_token}
    )

    assert "X-Frame-Options" not in res.headers
    assert res.headers["Content-Security-Policy"] == FRAME_ANCESTORS_CSP


def test_non_chat_routes_keep_default_headers(client):
    res = client.get("/health")

    assert "Content-Security-Policy" not in res.headers


def test_embed_preflight(client):
    res = client.options("/embed")

    assert res.status_code == 200
    assert res.headers["Access-Control-Allow-Origin"] == "*"
    assert "DELETE" in res.headers["Access-Control-Allow-Methods"]
    assert res.headers["Access-Control-Max-Age"] == "86400"


# ==================== CONVERSATIONS ====================


def test_list_conversations(client, store, auth_headers):
    _seed_conversation(store)
    _seed_conversation(store, owner="recSomeoneElse0001")

    res = client.get("/conversations", headers=auth_headers)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["total"] == 1
    assert data["conversations"][0]["id"] == "f" * 32
    assert data["conversations"][0]["title"] == "Chat 3/10/2026"


def test_list_conversations_requires_session(client):
    assert client.get("/conversations").status_code == 401


def test_conversation_messages(client, store, auth_headers, session_token):
    conversation_id = _seed_conversation(store)
    client.post(
        "/chat/send-message",
        json={
            "message": "What benefits am I eligible for?",
            "sessionToken": session_token,
            "conversationId": conversation_id.value,
        },
    )

    res = client.get(f"/conversations/{conversation_id.value}/messages", headers=auth_headers)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["conversation"]["messageCount"] == 2
    assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
    assert data["messages"][0]["content"] == "What benefits am I eligible for?"


def test_other_users_conversation_is_forbidden(client, store, auth_headers):
    conversation_id = _seed_conversation(store, owner="recSomeoneElse0001")

    res = client.get(f"/conversations/{conversation_id.value}/messages", headers=auth_headers)

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.parametrize("conversation_id", ["temp_abc123", "0" * 32])
def test_missing_conversation_is_not_found(client, auth_headers, conversation_id):
    res = client.get(f"/conversations/{conversation_id}/messages", headers=auth_headers)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.parametrize("conversation_id", ["x" * 129, "%20%20"])
def test_malformed_conversation_id_is_rejected(client, auth_headers, conversation_id):
    res = client.get(f"/conversations/{conversation_id}/messages", headers=auth_headers)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_airtable_outage_is_bad_gateway(client, store, auth_headers, monkeypatch):
    async def unavailable(user_id):
        raise ExternalServiceError("Airtable", "422 INVALID_FILTER_BY_FORMULA")

    monkeypatch.setattr(store.conversations, "get_by_user", unavailable)

    res = client.get("/conversations", headers=auth_headers)
    body = res.json()

    assert res.status_code == 502
    assert body["error"]["code"] == "SERVICE_UNAVAILABLE"
    assert body["error"]["message"] == "Airtable is unavailable"


# ==================== FEEDBACK ====================


def test_submit_feedback(client, store, auth_headers):
    res = client.post(
        "/feedback",
        json={"rating": 5, "comment": "Very <b>helpful</b>", "category": "helpfulness"},
        headers=auth_headers,
    )

    assert res.status_code == 201
    assert res.json()["data"] == {"received": True}
    feedback = store.analytics.feedback[0]
    assert feedback["rating"] == 5
    assert feedback["category"] == "helpfulness"
    assert "<" not in feedback["comment"]


def test_unknown_feedback_category_becomes_other(client, store, auth_headers):
    client.post("/feedback", json={"rating": 3, "category": "vibes"}, headers=auth_headers)

    assert store.analytics.feedback[0]["category"] == "other"


def test_feedback_rating_out_of_range(client, store, auth_headers):
    res = client.post("/feedback", json={"rating": 9}, headers=auth_headers)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert store.analytics.feedback == []


def test_feedback_body_validation(client, auth_headers):
    res = client.post("/feedback", json={"comment": "no rating"}, headers=auth_headers)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_REQUEST"


# ==================== AI ====================


def test_application_draft_is_stored(client, store, auth_headers):
    store.users.add(make_user(subscription_status="Premium"))

    res = client.post(
        "/ai/application-draft",
        json={
            "opportunity": {"title": "Veteran Small Business Grant", "description": "Funding"},
            "requirements": ["Business plan", "DD-214"],
        },
        headers=auth_headers,
    )
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["success"] is True
    assert data["model"] == "openai"
    assert data["metadata"]["aiModel"] == "openai"
    assert data["documentId"] == "doc1"
    assert store.analytics.documents[0]["type"] == "application_draft"

    prompt = store.openai.completions.calls[0]["messages"][-1]["content"]
    assert "Veteran Small Business Grant" in prompt
    assert "Business plan, DD-214" in prompt


def test_failed_draft_is_not_stored(client, store, auth_headers):
    store.openai.completions.error = RuntimeError("down")

    res = client.post(
        "/ai/application-draft", json={"opportunity": {"title": "Grant"}}, headers=auth_headers
    )
    data = res.json()["data"]

    assert data["model"] == "fallback"
    assert data["success"] is False
    assert data["documentId"] is None
    assert store.analytics.documents == []


def test_analyze_document_redacts_pii(client, store, auth_headers):
    res = client.post(
        "/ai/analyze-document",
        json={"text": "DD-214 for SSN 123-45-6789", "documentType": "DD-214"},
        headers=auth_headers,
    )

    assert res.status_code == 200
    prompt = store.openai.completions.calls[0]["messages"][-1]["content"]
    assert "123-45-6789" not in prompt
    assert "[REDACTED]" in prompt


def test_analyze_document_requires_text(client, auth_headers):
    res = client.post("/ai/analyze-document", json={"text": "   "}, headers=auth_headers)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
