from datetime import datetime, timezone

from conftest import make_user
from src.domain.entities.opportunity import Opportunity, Resource

URL = "/chat/send-message"


def _post(client, token, message="How do I apply for VA healthcare?", **extra):
    payload = {"message": message, "sessionToken": token, **extra}
    return client.post(URL, json=payload)


# ==================== REQUEST VALIDATION ====================


def test_missing_message_is_rejected(client, session_token):
    res = client.post(URL, json={"sessionToken": session_token})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_MESSAGE"


def test_non_string_message_is_rejected(client, session_token):
    res = client.post(URL, json={"message": {"text": "hi"}, "sessionToken": session_token})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_MESSAGE"


def test_missing_session_token_is_unauthorized(client):
    res = client.post(URL, json={"message": "hello"})

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_session_token(client):
    res = _post(client, "not-a-jwt")

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_SESSION"


def test_message_empty_after_sanitizing(client, session_token):
    res = _post(client, session_token, message="<>")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "EMPTY_MESSAGE"


def test_malicious_message_is_rejected(client, store, session_token):
    res = _post(client, session_token, message="what is in document.cookie?")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "MALICIOUS_CONTENT"
    assert store.openai.completions.calls == []


# ==================== FREE TIER ====================


def test_free_user_reply(client, store, session_token):
    res = _post(client, session_token)
    body = res.json()
    data = body["data"]

    assert res.status_code == 200
    assert body["success"] is True
    assert data["aiModel"] == "gpt-3.5-turbo"
    assert data["usage"] == {
        "messagesRemaining": 49,
        "messagesLimit": 50,
        "tokensUsed": 20,
        "tier": "Free",
    }
    assert data["conversationId"].startswith("temp_")

    user_msg, assistant_msg = data["messages"]
    assert user_msg["role"] == "user"
    assert user_msg["content"] == "How do I apply for VA healthcare?"
    assert assistant_msg["role"] == "assistant"
    assert assistant_msg["content"] == store.openai.completions.content
    assert assistant_msg["metadata"]["serviceTier"] == "Free"

    assert res.headers["X-RateLimit-Limit"] == "10"
    assert res.headers["X-RateLimit-Remaining"] == "9"
    assert "processingTime" in body["metadata"]


def test_free_user_model_settings(client, store, session_token):
    _post(client, session_token)

    call = store.openai.completions.calls[0]
    assert call["model"] == "gpt-3.5-turbo"
    assert call["max_tokens"] == 500
    assert call["temperature"] == 0.5
    assert call["messages"][0]["role"] == "system"
    assert "SERVICE TIER: Free" in call["messages"][0]["content"]
    assert call["messages"][-1] == {
        "role": "user",
        "content": "How do I apply for VA healthcare?",
    }


def test_free_user_opportunity_request_gets_upsell(client, store, session_token):
    store.catalog.opportunities = [
        Opportunity(id="recOpp000000000001", title="Hidden Grant", description="x")
    ]

    res = _post(client, session_token, message="Show me jobs near Fort Bragg")
    assistant = res.json()["data"]["messages"][1]

    assert res.status_code == 200
    assert "search_opportunities" not in store.catalog.calls
    assert "Looking for Opportunities?" in assistant["content"]
    assert assistant["metadata"]["blockedFeatures"] == {"opportunities": True}
    assert assistant["metadata"]["upsellShown"] is True

    system_prompt = store.openai.completions.calls[0]["messages"][0]["content"]
    assert "PREMIUM FEATURES REQUESTED" in system_prompt
    assert "Hidden Grant" not in system_prompt


def test_free_user_still_gets_resources(client, store, session_token):
    store.catalog.resources = [
        Resource(id="recRes000000000001", title="VA Housing Assistance", description="Help")
    ]

    _post(client, session_token, message="What housing assistance is there?")

    assert "search_resources" in store.catalog.calls
    messages = store.openai.completions.calls[0]["messages"]
    assert any("VA Housing Assistance" in m["content"] for m in messages)


# ==================== PAID TIERS ====================


def test_premium_user_gets_opportunity_context(client, store, session_token):
    store.users.add(make_user(subscription_status="Premium"))
    store.catalog.opportunities = [
        Opportunity(
            id="recOpp000000000001",
            title="Veteran Small Business Grant",
            description="Funding for veteran-owned businesses",
            deadline=datetime(2026, 6, 30, tzinfo=timezone.utc),
            opportunity_id="VSB-2026",
        )
    ]

    res = _post(client, session_token, message="Are there any grants or funding?")
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["aiModel"] == "gpt-4o-mini"
    assert data["usage"]["tier"] == "Premium"
    assert data["usage"]["messagesLimit"] == 500
    assert "search_opportunities" in store.catalog.calls

    call = store.openai.completions.calls[0]
    assert call["max_tokens"] == 1500
    assert call["temperature"] == 0.7
    assert call["messages"][0]["content"].startswith("Hello Sam! Welcome back to VADIY Premium.")
    assert call["messages"][1]["content"].startswith("Available Data:")
    assert "Veteran Small Business Grant" in call["messages"][1]["content"]
    assert "VSB-2026" in call["messages"][1]["content"]


def test_catalog_failure_degrades_to_note(client, store, session_token):
    store.users.add(make_user(subscription_status="Founder Club"))
    store.catalog.error = RuntimeError("airtable down")

    res = _post(client, session_token, message="any jobs for me?")

    assert res.status_code == 200
    system_prompt = store.openai.completions.calls[0]["messages"][0]["content"]
    assert "Unable to access VADIY database" in system_prompt


def test_tier_is_cached_between_messages(client, store, session_token):
    store.users.add(make_user(subscription_status="Premium"))

    _post(client, session_token)
    _post(client, session_token)

    # One lookup for the tier, one per message for the personalized greeting
    assert store.users.profile_calls == 3


# ==================== MODEL FAILURE / STORAGE ====================


def test_model_failure_returns_fallback_reply(client, store, session_token):
    store.openai.completions.error = RuntimeError("upstream exploded")

    res = _post(client, session_token)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["aiModel"] == "fallback"
    assert "1-800-827-1000" in data["messages"][1]["content"]
    assert data["usage"]["tokensUsed"] == 0


def test_messages_stored_for_real_conversation(client, store, session_token):
    res = _post(client, session_token, conversationId="c0ffee00c0ffee00c0ffee00c0ffee00")
    data = res.json()["data"]

    assert res.status_code == 200
    assert len(store.conversations.conversations) == 1
    conversation = next(iter(store.conversations.conversations.values()))
    # Unknown ids are replaced by the conversation that was created
    assert data["conversationId"] == conversation.id.value
    assert {m["conversationId"] for m in data["messages"]} == {conversation.id.value}
    assert conversation.user_id == "recUser00000000001"
    assert conversation.title.startswith("Chat ")
    assert [m.role for m in store.messages.messages] == ["user", "assistant"]


def test_temporary_conversation_is_not_stored(client, store, session_token):
    _post(client, session_token)

    assert store.conversations.conversations == {}
    assert store.messages.messages == []


def test_history_is_sent_to_the_model(client, store, session_token):
    first = _post(client, session_token, message="first question", conversationId="c0ffee")
    conversation_id = first.json()["data"]["conversationId"]

    second = _post(
        client, session_token, message="second question", conversationId=conversation_id
    )

    assert second.json()["data"]["conversationId"] == conversation_id
    assert list(store.conversations.conversations) == [conversation_id]
    assert len(store.messages.messages) == 4
    messages = store.openai.completions.calls[1]["messages"]
    contents = [m["content"] for m in messages]
    assert "first question" in contents
    assert contents[-1] == "second question"


def test_blank_conversation_id_starts_temporary_chat(client, store, session_token):
    res = _post(client, session_token, conversationId="   ")

    assert res.status_code == 200
    assert res.json()["data"]["conversationId"].startswith("temp_")
    assert store.conversations.conversations == {}


def test_overlong_conversation_id_is_rejected(client, store, session_token):
    res = _post(client, session_token, conversationId="x" * 129)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_CONVERSATION_ID"
    assert store.openai.completions.calls == []

    # No rate-limit slot was spent on the rejected request
    ok = _post(client, session_token)
    assert ok.headers["X-RateLimit-Remaining"] == "9"


def test_message_analytics_event(client, store, session_token):
    _post(client, session_token)

    event = store.analytics.events[-1]
    assert event["type"] == "message_sent"
    assert event["sessionId"] == "a" * 64
    assert event["data"]["aiModel"] == "gpt-3.5-turbo"
    assert event["data"]["success"] is True


def test_analytics_event_carries_client_ip(client, store, session_token):
    client.post(
        URL,
        json={"message": "hello", "sessionToken": session_token},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert store.analytics.events[-1]["ipAddress"] == "203.0.113.7"


def test_token_usage_is_recorded(client, store, session_token):
    _post(client, session_token)

    usage = store.usage.token_usage("recUser00000000001")
    assert usage["prompt"] == 12
    assert usage["completion"] == 8
    assert usage["model:gpt-3.5-turbo"] == 20
