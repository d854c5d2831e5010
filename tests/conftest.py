import json
import os
import re
import sys
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional

import httpx
import pytest

# Settings are read at import time, so the environment goes first
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-that-is-at-least-32-characters")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")
os.environ["APP_ENV"] = "testing"
os.environ["USAGE_BACKEND"] = "memory"
os.environ["ENABLE_ANALYTICS"] = "true"

# Project root on the path so `src` imports resolve
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__) + "/.."))

from dishka import Provider, Scope, provide
from fastapi.testclient import TestClient
from openai import AsyncOpenAI

from src.domain.entities.conversation import Conversation
from src.domain.entities.message import Message
from src.domain.entities.opportunity import Opportunity, Resource, UserMatches
from src.domain.entities.user import User, UserProfile
from src.domain.exceptions import AccessDeniedError
from src.domain.ports.database_inspector import DatabaseInspector
from src.domain.ports.repositories import (
    AnalyticsRepository,
    CatalogRepository,
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from src.domain.ports.usage_tracker import UsageTracker
from src.domain.value_objects.conversation_id import ConversationId
from src.fastapi_app import create_fastapi_app
from src.infrastructure.airtable.client import AirtableClient
from src.infrastructure.cache import InMemoryUsageTracker
from src.services.llm_client import reset_circuit_breakers
from src.setup.ioc.container import create_container
from src.utils.security import SecurityManager


# ==================== FAKE AIRTABLE ====================

AIRTABLE_API_URL = "https://airtable.test"
AIRTABLE_BASE_ID = "appTestBase0001"

SIMPLE_FORMULA = re.compile(r'^\{(\w+)\} = "(.*)"$')


class FakeAirtable:
    """MockTransport handler serving an in-memory base.

    With `formulas=True` it also honours `{Field} = "value"` filters, the
    first sort key and maxRecords; other formulas return every record.
    """

    def __init__(self, tables, formulas: bool = False):
        self.tables = tables
        self.formulas = formulas
        self.requests: list[httpx.Request] = []
        self.page_size = 100

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/")[3:]
        table = parts[0]
        if table not in self.tables:
            return httpx.Response(
                404, json={"error": {"type": "TABLE_NOT_FOUND", "message": "Could not find table"}}
            )
        records = self.tables[table]

        if len(parts) > 1:
            record = next((r for r in records if r["id"] == parts[1]), None)
            if record is None:
                return httpx.Response(404, json={"error": "NOT_FOUND"})
            if request.method == "PATCH":
                record["fields"].update(json.loads(request.content)["fields"])
            return httpx.Response(200, json=record)

        if request.method == "POST":
            body = json.loads(request.content)
            record = {"id": f"rec{len(records):014d}", "fields": body["fields"]}
            records.append(record)
            return httpx.Response(200, json=record)

        params = request.url.params
        if self.formulas:
            records = self._query(records, params)
        page_size = int(params.get("pageSize", self.page_size))
        start = int(params.get("offset", 0))
        page = records[start : start + page_size]
        payload = {"records": page}
        if start + page_size < len(records):
            payload["offset"] = str(start + page_size)
        return httpx.Response(200, json=payload)

    @staticmethod
    def _query(records, params):
        match = SIMPLE_FORMULA.match(params.get("filterByFormula", ""))
        if match:
            field_name, value = match.groups()
            records = [r for r in records if str(r["fields"].get(field_name)) == value]
        sort_field = params.get("sort[0][field]")
        if sort_field:
            records = sorted(
                records,
                key=lambda r: r["fields"].get(sort_field) or "",
                reverse=params.get("sort[0][direction]") == "desc",
            )
        if "maxRecords" in params:
            records = records[: int(params["maxRecords"])]
        return records


def airtable_client(handler) -> AirtableClient:
    return AirtableClient(
        api_key="pat-test",
        base_id=AIRTABLE_BASE_ID,
        api_url=AIRTABLE_API_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


# ==================== FAKE REPOSITORIES ====================


def make_user(
    user_id="recUser00000000001",
    email="veteran@example.com",
    subscription_status="Free",
    security_level="standard",
    first_name="Sam",
) -> User:
    now = datetime.now(timezone.utc)
    return User(
        id=user_id,
        email=email,
        first_name=first_name,
        last_name="Rivera",
        created_at=now,
        updated_at=now,
        last_login=now,
        subscription_status=subscription_status,
        security_level=security_level,
    )


class FakeUserRepository(UserRepository):
    def __init__(self):
        self.users: dict[str, User] = {}
        self.profile_error: Optional[Exception] = None
        self.profile_calls = 0
        self.preference_updates: list[str] = []

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id, requester_id=None):
        return self.users.get(user_id)

    async def get_by_email(self, email, requester_id=None):
        for user in self.users.values():
            if user.email.lower() == email.value.lower():
                return user
        return None

    async def get_profile(self, user_id):
        self.profile_calls += 1
        if self.profile_error:
            raise self.profile_error
        user = self.users.get(user_id)
        if user is None:
            return None
        return UserProfile(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            subscription_status=user.subscription_status,
        )

    async def update_preferences(self, user_id, preferences, requester_id):
        self.preference_updates.append(user_id)

    async def check_rate_limit(self, user_id):
        return {"allowed": True, "remaining": 19}


class FakeConversationRepository(ConversationRepository):
    def __init__(self):
        self.conversations: dict[str, Conversation] = {}

    async def create(self, user_id, title, is_encrypted=False):
        conversation_id = ConversationId(SecurityManager.generate_token(16))
        self.conversations[conversation_id.value] = Conversation.create(
            conversation_id, user_id, title, is_encrypted
        )
        return conversation_id

    async def get(self, conversation_id, user_id):
        conversation = self.conversations.get(conversation_id.value)
        if conversation is None:
            return None
        if not conversation.is_owned_by(user_id):
            raise AccessDeniedError("Conversation belongs to another user")
        return conversation

    async def get_by_user(self, user_id):
        owned = [c for c in self.conversations.values() if c.is_owned_by(user_id)]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)


class FakeMessageRepository(MessageRepository):
    def __init__(self, conversations: FakeConversationRepository):
        self.conversations = conversations
        self.messages: list[Message] = []

    async def add(self, conversation_id, role, content, metadata=None, attachments=None):
        message = Message(
            id=SecurityManager.generate_token(8),
            conversation_id=conversation_id,
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc),
            metadata=metadata or {},
            attachments=attachments or [],
        )
        self.messages.append(message)
        conversation = self.conversations.conversations.get(conversation_id.value)
        if conversation:
            conversation.record_message()
        return message.id

    async def get_for_conversation(self, conversation_id, user_id, limit=50):
        await self.conversations.get(conversation_id, user_id)
        matching = [m for m in self.messages if m.conversation_id == conversation_id]
        return matching[-limit:]

    async def delete_older_than(self, cutoff):
        keep = [m for m in self.messages if m.timestamp >= cutoff]
        deleted = len(self.messages) - len(keep)
        self.messages = keep
        return deleted


class FakeCatalogRepository(CatalogRepository):
    def __init__(self):
        self.opportunities: list[Opportunity] = []
        self.resources: list[Resource] = []
        self.user_matches: Optional[UserMatches] = None
        self.error: Optional[Exception] = None
        self.calls: list[str] = []

    def _record(self, name):
        self.calls.append(name)
        if self.error:
            raise self.error

    async def get_opportunities(self, user_id, filters=None, limit=20):
        self._record("get_opportunities")
        return self.opportunities[:limit]

    async def get_matched_opportunities(self, user_id):
        self._record("get_matched_opportunities")
        return self.opportunities

    async def get_matched_resources(self, user_id):
        self._record("get_matched_resources")
        return self.resources

    async def search_opportunities(self, query, user_id, limit=10):
        self._record("search_opportunities")
        return self.opportunities[:limit]

    async def search_resources(self, query, user_id, limit=10):
        self._record("search_resources")
        return self.resources[:limit]

    async def get_user_matches(self, user_id):
        self._record("get_user_matches")
        return self.user_matches


class FakeAnalyticsRepository(AnalyticsRepository):
    def __init__(self):
        self.events: list[dict[str, Any]] = []
        self.feedback: list[dict[str, Any]] = []
        self.documents: list[dict[str, Any]] = []

    async def track_event(
        self, user_id, session_id, event_type, event_data, user_agent=None, ip_address=None
    ):
        self.events.append(
            {
                "userId": user_id,
                "sessionId": session_id,
                "type": event_type,
                "data": event_data,
                "ipAddress": ip_address,
            }
        )

    async def submit_feedback(self, user_id, message_id, rating, comment, category):
        self.feedback.append(
            {
                "userId": user_id,
                "messageId": message_id,
                "rating": rating,
                "comment": comment,
                "category": category,
            }
        )

    async def store_generated_document(self, user_id, document_type, content, metadata=None):
        document_id = f"doc{len(self.documents) + 1}"
        self.documents.append({"id": document_id, "userId": user_id, "type": document_type})
        return document_id


class FakeInspector(DatabaseInspector):
    def __init__(self, configured=True, status=None, discovered=None):
        self.configured = configured
        self.status = status if status is not None else {
            "User Profiles": True,
            "Opportunities": True,
            "Resources": False,
        }
        self.discovered = discovered if discovered is not None else ["User Profiles"]

    @property
    def is_configured(self):
        return self.configured

    async def test_connection(self):
        return dict(self.status)

    async def list_all_tables_in_base(self):
        return list(self.discovered)


# ==================== FAKE OPENAI ====================


class FakeCompletions:
    def __init__(self):
        self.calls: list[dict[str, Any]] = []
        self.content = "Here are some VA resources that can help."
        self.error: Optional[Exception] = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content=self.content), finish_reason="stop"
                )
            ],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=8, total_tokens=20),
        )


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


# ==================== FIXTURES ====================

FIXED_NOW = datetime(2026, 3, 10, 12, 0, 30, tzinfo=timezone.utc)


class FakeStore:
    """Every fake the test container hands out, shared across requests."""

    def __init__(self):
        self.users = FakeUserRepository()
        self.conversations = FakeConversationRepository()
        self.messages = FakeMessageRepository(self.conversations)
        self.catalog = FakeCatalogRepository()
        self.analytics = FakeAnalyticsRepository()
        self.inspector = FakeInspector()
        self.usage = InMemoryUsageTracker(clock=lambda: FIXED_NOW)
        self.openai = FakeOpenAI()


class FakeProvider(Provider):
    def __init__(self, store: FakeStore):
        super().__init__()
        self.store = store

    @provide(scope=Scope.APP)
    def get_user_repository(self) -> UserRepository:
        return self.store.users

    @provide(scope=Scope.APP)
    def get_conversation_repository(self) -> ConversationRepository:
        return self.store.conversations

    @provide(scope=Scope.APP)
    def get_message_repository(self) -> MessageRepository:
        return self.store.messages

    @provide(scope=Scope.APP)
    def get_catalog_repository(self) -> CatalogRepository:
        return self.store.catalog

    @provide(scope=Scope.APP)
    def get_analytics_repository(self) -> AnalyticsRepository:
        return self.store.analytics

    @provide(scope=Scope.APP)
    def get_database_inspector(self) -> DatabaseInspector:
        return self.store.inspector

    @provide(scope=Scope.APP)
    async def get_usage_tracker(self) -> UsageTracker:
        return self.store.usage

    @provide(scope=Scope.APP)
    def get_openai_client(self) -> AsyncOpenAI:
        return self.store.openai


@pytest.fixture()
def store():
    reset_circuit_breakers()
    return FakeStore()


@pytest.fixture()
def app(store):
    """Create and configure a new FastAPI app instance for each test."""
    return create_fastapi_app(create_container(FakeProvider(store)))


@pytest.fixture()
def client(app):
    """A test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def security():
    return SecurityManager()


@pytest.fixture()
def session_token(security):
    """Anonymous-style session token for the default fake user."""
    return security.create_jwt(
        {"sessionId": "a" * 64, "userId": "recUser00000000001", "isAnonymous": False}
    )


@pytest.fixture()
def auth_headers(session_token):
    """Authentication headers with valid JWT token."""
    return {"Authorization": f"Bearer {session_token}"}
