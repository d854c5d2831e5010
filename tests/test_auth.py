from conftest import make_user
from src.config.settings import Config


# ==================== POST /auth/session ====================


def test_create_session_returns_verifiable_token(client, security):
    res = client.post("/auth/session", json={"userAgent": "pytest", "embedded": True})
    body = res.json()

    assert res.status_code == 200
    assert body["success"] is True
    assert body["expiresIn"] == Config.SESSION_TTL_SECONDS
    assert len(body["sessionId"]) == 64
    assert len(body["userId"]) == 32

    claims = security.verify_jwt(body["sessionToken"])
    assert claims["userId"] == body["userId"]
    assert claims["sessionId"] == body["sessionId"]
    assert claims["isAnonymous"] is True
    assert claims["embedded"] is True
    assert claims["userAgent"] == "pytest"


def test_session_token_works_for_chat(client):
    token = client.post("/auth/session", json={}).json()["sessionToken"]

    res = client.post("/chat/send-message", json={"message": "hello", "sessionToken": token})

    assert res.status_code == 200


def test_session_preflight(client):
    res = client.options("/auth/session")

    assert res.status_code == 200
    assert "POST" in res.headers["Access-Control-Allow-Methods"]


# ==================== POST /auth/verify-user ====================


def test_verify_user_success(client, store, security):
    store.users.add(make_user(subscription_status="Premium"))

    res = client.post("/auth/verify-user", json={"email": "veteran@example.com"})
    body = res.json()

    assert res.status_code == 200
    data = body["data"]
    assert data["user"]["email"] == "veteran@example.com"
    assert data["user"]["subscriptionStatus"] == "Premium"
    assert data["rateLimit"] == {"allowed": True, "remaining": 19}
    assert body["metadata"]["rateLimit"]["limit"] == Config.AUTH_RATE_LIMIT

    claims = security.verify_jwt(data["session"]["token"])
    assert claims["userId"] == "recUser00000000001"
    assert claims["sessionId"] == data["session"]["sessionId"]
    assert claims["exp"] - claims["iat"] == Config.AUTH_SESSION_TTL_SECONDS
    assert store.users.preference_updates == ["recUser00000000001"]


def test_verify_user_rejects_bad_email(client):
    res = client.post("/auth/verify-user", json={"email": "not-an-email"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_EMAIL"


def test_verify_user_unknown_email(client):
    res = client.post("/auth/verify-user", json={"email": "nobody@example.com"})

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "USER_NOT_FOUND"


def test_verify_user_invalid_platform_token(client, store):
    store.users.add(make_user())

    res = client.post(
        "/auth/verify-user",
        json={"email": "veteran@example.com", "softrToken": "forged.token.value"},
    )

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_TOKEN"


def test_enhanced_security_needs_platform_token(client, store, security):
    store.users.add(make_user(security_level="enhanced"))

    res = client.post("/auth/verify-user", json={"email": "veteran@example.com"})
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ENHANCED_SECURITY_REQUIRED"

    platform_token = security.create_jwt({"email": "veteran@example.com"})
    res = client.post(
        "/auth/verify-user",
        json={"email": "veteran@example.com", "softrToken": platform_token},
    )
    assert res.status_code == 200


def test_verify_user_attempts_are_rate_limited(client):
    codes = [
        client.post("/auth/verify-user", json={"email": "nobody@example.com"}).status_code
        for _ in range(Config.AUTH_RATE_LIMIT + 1)
    ]

    assert codes[:-1] == [404] * Config.AUTH_RATE_LIMIT
    assert codes[-1] == 429


# ==================== GET /user/tier ====================


def test_user_tier_requires_bearer_token(client):
    res = client.get("/user/tier")

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


def test_user_tier_rejects_bad_token(client):
    res = client.get("/user/tier", headers={"Authorization": "Bearer nope"})

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_SESSION"


def test_user_tier_for_founder(client, store, auth_headers):
    store.users.add(make_user(subscription_status="Founder Club"))

    res = client.get("/user/tier", headers=auth_headers)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["tier"] == "Founder Club"
    assert data["serviceTier"]["modelToUse"] == "gpt-4o-mini"
    assert data["userProfile"] == {"firstName": "Sam", "subscriptionStatus": "Founder Club"}
    assert data["limits"] == {
        "messagesPerDay": 1000,
        "conversationHistory": 25,
        "maxTokens": 2000,
    }
    assert all(data["features"].values())


def test_user_tier_unknown_user_is_free(client, auth_headers):
    data = client.get("/user/tier", headers=auth_headers).json()["data"]

    assert data["tier"] == "Free"
    assert data["features"]["opportunities"] is False
    assert data["features"]["resources"] is True
    assert data["userProfile"]["firstName"] is None


def test_user_tier_lookup_failure_falls_back_to_free(client, store, auth_headers):
    store.users.profile_error = RuntimeError("airtable down")

    res = client.get("/user/tier", headers=auth_headers)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["tier"] == "Free"
    assert data["error"] == "Could not fetch user data, using default tier"
