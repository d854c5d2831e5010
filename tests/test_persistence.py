import asyncio
import json

import pytest

from conftest import FakeAirtable, airtable_client
from src.domain.exceptions import AccessDeniedError, EntityNotFoundError
from src.domain.value_objects.conversation_id import ConversationId
from src.infrastructure.airtable.tables import (
    CHAT_ANALYTICS,
    CONVERSATIONS,
    MESSAGES,
    AirtableTables,
)
from src.infrastructure.persistence import (
    AirtableAnalyticsRepository,
    AirtableConversationRepository,
    AirtableMessageRepository,
)
from src.utils.security import SecurityManager

OWNER = "recUser00000000001"
CONVERSATION_ID = ConversationId("c" * 32)
SECRET = "unit-test-secret-with-enough-length-for-hs256"


def _conversation(owner=OWNER, encrypted=False, count=0):
    return {
        "id": "recConversation001",
        "fields": {
            "Conversation_ID": CONVERSATION_ID.value,
            "User_ID": owner,
            "Title": "Benefits",
            "Is_Encrypted": encrypted,
            "Status": "active",
            "Message_Count": count,
        },
    }


def _message(n, role, timestamp, content="", encrypted_content=None):
    return {
        "id": f"recMessage{n:08d}",
        "fields": {
            "Message_ID": f"m{n}",
            "Conversation_ID": CONVERSATION_ID.value,
            "Role": role,
            "Content": content,
            "Encrypted_Content": encrypted_content,
            "Timestamp": timestamp,
        },
    }


def _repositories(server, security=None):
    tables = AirtableTables(
        airtable_client(server),
        {CONVERSATIONS: ["Conversations"], MESSAGES: ["Messages"]},
    )
    conversations = AirtableConversationRepository(tables)
    security = security or SecurityManager(jwt_secret=SECRET, encryption_key="passphrase")
    return conversations, AirtableMessageRepository(tables, conversations, security)


# ==================== MESSAGES ====================


def test_user_message_in_encrypted_conversation():
    security = SecurityManager(jwt_secret=SECRET, encryption_key="passphrase")
    server = FakeAirtable(
        {"Conversations": [_conversation(encrypted=True)], "Messages": []}, formulas=True
    )
    _, messages = _repositories(server, security)

    asyncio.run(messages.add(CONVERSATION_ID, "user", "My SSN is 123-45-6789"))

    stored = server.tables["Messages"][0]["fields"]
    assert stored["Content"] == "My SSN is [REDACTED]"
    assert security.decrypt(stored["Encrypted_Content"]) == "My SSN is 123-45-6789"
    assert stored["Conversation_ID"] == CONVERSATION_ID.value


def test_user_message_in_plain_conversation_is_masked():
    server = FakeAirtable({"Conversations": [_conversation()], "Messages": []}, formulas=True)
    _, messages = _repositories(server)

    asyncio.run(messages.add(CONVERSATION_ID, "user", "My SSN is 123-45-6789"))

    stored = server.tables["Messages"][0]["fields"]
    assert stored["Content"] == "My SSN is XXX-XX-6789"
    assert stored["Encrypted_Content"] is None


def test_assistant_message_is_stored_as_is():
    server = FakeAirtable(
        {"Conversations": [_conversation(encrypted=True)], "Messages": []}, formulas=True
    )
    _, messages = _repositories(server)

    asyncio.run(
        messages.add(CONVERSATION_ID, "assistant", "Call 800-827-1000", metadata={"tier": "free"})
    )

    stored = server.tables["Messages"][0]["fields"]
    assert stored["Content"] == "Call 800-827-1000"
    assert stored["Encrypted_Content"] is None
    assert json.loads(stored["Metadata"]) == {"tier": "free"}


def test_adding_a_message_bumps_the_conversation():
    server = FakeAirtable(
        {"Conversations": [_conversation(count=2)], "Messages": []}, formulas=True
    )
    _, messages = _repositories(server)

    asyncio.run(messages.add(CONVERSATION_ID, "user", "hello"))

    fields = server.tables["Conversations"][0]["fields"]
    assert fields["Message_Count"] == 3
    assert fields["Last_Message_At"] == server.tables["Messages"][0]["fields"]["Timestamp"]
    assert fields["Updated_At"] == fields["Last_Message_At"]
    assert server.requests[-1].method == "PATCH"


def test_adding_to_missing_conversation_raises():
    server = FakeAirtable({"Conversations": [], "Messages": []}, formulas=True)
    _, messages = _repositories(server)

    with pytest.raises(EntityNotFoundError):
        asyncio.run(messages.add(CONVERSATION_ID, "user", "hello"))

    assert server.tables["Messages"] == []
    assert all(request.method == "GET" for request in server.requests)


def test_history_is_latest_messages_oldest_first():
    server = FakeAirtable(
        {
            "Conversations": [_conversation()],
            "Messages": [
                _message(1, "user", "2026-03-10T12:00:01+00:00", "first"),
                _message(3, "user", "2026-03-10T12:00:03+00:00", "third"),
                _message(2, "assistant", "2026-03-10T12:00:02+00:00", "second"),
            ],
        },
        formulas=True,
    )
    _, messages = _repositories(server)

    history = asyncio.run(messages.get_for_conversation(CONVERSATION_ID, OWNER, limit=2))

    assert [m.content for m in history] == ["second", "third"]
    assert server.requests[-1].url.params["sort[0][direction]"] == "desc"


def test_history_decrypts_user_messages():
    security = SecurityManager(jwt_secret=SECRET, encryption_key="passphrase")
    server = FakeAirtable(
        {
            "Conversations": [_conversation(encrypted=True)],
            "Messages": [
                _message(
                    1,
                    "user",
                    "2026-03-10T12:00:01+00:00",
                    "SSN [REDACTED]",
                    security.encrypt("SSN 123-45-6789"),
                ),
                _message(2, "user", "2026-03-10T12:00:02+00:00", "[REDACTED]", "garbage"),
                _message(3, "assistant", "2026-03-10T12:00:03+00:00", "Noted."),
            ],
        },
        formulas=True,
    )
    _, messages = _repositories(server, security)

    history = asyncio.run(messages.get_for_conversation(CONVERSATION_ID, OWNER))

    assert [m.content for m in history] == [
        "SSN 123-45-6789",
        "[Decryption failed]",
        "Noted.",
    ]


def test_history_of_missing_conversation_raises():
    server = FakeAirtable({"Conversations": [], "Messages": []}, formulas=True)
    _, messages = _repositories(server)

    with pytest.raises(EntityNotFoundError):
        asyncio.run(messages.get_for_conversation(CONVERSATION_ID, OWNER))


# ==================== CONVERSATIONS ====================


def test_get_conversation_of_owner():
    server = FakeAirtable({"Conversations": [_conversation(count=4)]}, formulas=True)
    conversations, _ = _repositories(server)

    conversation = asyncio.run(conversations.get(CONVERSATION_ID, OWNER))

    assert conversation.id == CONVERSATION_ID
    assert conversation.message_count == 4


def test_get_conversation_of_another_user_is_denied():
    server = FakeAirtable(
        {"Conversations": [_conversation(owner="recSomeoneElse0001")], "Messages": []},
        formulas=True,
    )
    conversations, messages = _repositories(server)

    with pytest.raises(AccessDeniedError):
        asyncio.run(conversations.get(CONVERSATION_ID, OWNER))
    with pytest.raises(AccessDeniedError):
        asyncio.run(messages.get_for_conversation(CONVERSATION_ID, OWNER))


def test_create_conversation():
    server = FakeAirtable({"Conversations": []}, formulas=True)
    conversations, _ = _repositories(server)

    conversation_id = asyncio.run(conversations.create(OWNER, "Chat 3/10/2026", is_encrypted=True))

    fields = server.tables["Conversations"][0]["fields"]
    assert len(conversation_id.value) == 32
    assert fields["Conversation_ID"] == conversation_id.value
    assert fields["Is_Encrypted"] is True
    assert fields["Message_Count"] == 0


# ==================== ANALYTICS ====================


def _analytics(server, enabled):
    tables = AirtableTables(airtable_client(server), {CHAT_ANALYTICS: ["Chat_Analytics"]})
    return AirtableAnalyticsRepository(tables, enabled=enabled)


def test_disabled_analytics_sends_nothing():
    server = FakeAirtable({"Chat_Analytics": []})

    asyncio.run(
        _analytics(server, enabled=False).track_event(
            OWNER, "s" * 64, "message_sent", {"tier": "free"}, ip_address="1.2.3.4"
        )
    )

    assert server.requests == []


def test_analytics_event_hashes_ip_address():
    server = FakeAirtable({"Chat_Analytics": []})

    asyncio.run(
        _analytics(server, enabled=True).track_event(
            OWNER,
            "s" * 64,
            "message_sent",
            {"tier": "free"},
            user_agent="pytest",
            ip_address="1.2.3.4",
        )
    )

    fields = server.tables["Chat_Analytics"][0]["fields"]
    assert fields["IP_Address"] == SecurityManager.hash("1.2.3.4")
    assert fields["User_Agent"] == "pytest"
    assert fields["Event_Type"] == "message_sent"
    assert json.loads(fields["Event_Data"]) == {"tier": "free"}


def test_analytics_event_without_ip_address():
    server = FakeAirtable({"Chat_Analytics": []})

    asyncio.run(
        _analytics(server, enabled=True).track_event(OWNER, "s" * 64, "message_sent", {})
    )

    fields = server.tables["Chat_Analytics"][0]["fields"]
    assert fields["IP_Address"] == "unknown"
    assert fields["User_Agent"] == "unknown"
