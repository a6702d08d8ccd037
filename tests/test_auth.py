"""
test_auth.py — /auth routes against the in-memory FakeDB.
"""

from unittest.mock import patch

VALID_USER = {"email": "test@example.com", "password": "securepass123"}


async def _register(ac, payload=None):
    return await ac.post("/auth/register", json=payload or VALID_USER)


# ── Register ──────────────────────────────────────────────────────────────────

class TestRegister:
    async def test_register_success_201(self, db_client):
        r = await _register(db_client)
        assert r.status_code == 201

    async def test_register_returns_token_and_user(self, db_client):
        data = (await _register(db_client)).json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == VALID_USER["email"]

    async def test_register_does_not_return_password(self, db_client):
        data = (await _register(db_client)).json()
        assert "password" not in data["user"]
        assert "hashed_password" not in data["user"]

    async def test_register_duplicate_email_409(self, db_client):
        await _register(db_client)
        r = await _register(db_client)
        assert r.status_code == 409
        assert "already exists" in r.json()["detail"].lower()

    async def test_duplicate_check_ignores_case(self, db_client):
        await _register(db_client)
        r = await _register(db_client, {**VALID_USER, "email": "TEST@example.com"})
        assert r.status_code == 409

    async def test_register_short_password_422(self, db_client):
        r = await _register(db_client, {"email": "a@b.com", "password": "short"})
        assert r.status_code == 422

    async def test_register_invalid_email_422(self, db_client):
        r = await _register(db_client, {"email": "not-an-email", "password": "securepass123"})
        assert r.status_code == 422

    async def test_register_without_database_503(self, client):
        r = await _register(client)
        assert r.status_code == 503


# ── Login ─────────────────────────────────────────────────────────────────────

class TestLogin:
    async def test_login_success(self, db_client):
        await _register(db_client)
        r = await db_client.post("/auth/login", json=VALID_USER)
        assert r.status_code == 200
        assert r.json()["user"]["email"] == VALID_USER["email"]

    async def test_login_wrong_password_401(self, db_client):
        await _register(db_client)
        r = await db_client.post(
            "/auth/login", json={"email": VALID_USER["email"], "password": "wrongpassword"}
        )
        assert r.status_code == 401

    async def test_login_unknown_email_401(self, db_client):
        r = await db_client.post("/auth/login", json={"email": "nobody@example.com", "password": "any"})
        assert r.status_code == 401


# ── /auth/me ──────────────────────────────────────────────────────────────────

class TestMe:
    async def test_me_requires_auth_401(self, db_client):
        r = await db_client.get("/auth/me")
        assert r.status_code == 401

    async def test_me_returns_user_with_valid_token(self, db_client, auth_headers):
        r = await db_client.get("/auth/me", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["email"] == VALID_USER["email"]

    async def test_me_invalid_token_401(self, db_client):
        r = await db_client.get("/auth/me", headers={"Authorization": "Bearer garbage.token.here"})
        assert r.status_code == 401

    async def test_me_token_for_non_objectid_subject_401(self, db_client):
        from nutricoach.core.security import create_access_token

        token = create_access_token("not-an-object-id")
        r = await db_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401


# ── Brute-force limiting ──────────────────────────────────────────────────────

class TestAuthRateLimit:
    async def test_login_429_when_limit_exceeded(self, db_client):
        from nutricoach.core.rate_limit import limiter

        with patch.object(limiter.limiter, "hit", return_value=False):
            r = await db_client.post("/auth/login", json=VALID_USER)

        assert r.status_code == 429
        assert "error" in r.json()

    async def test_limiter_attached_to_app_state(self):
        from nutricoach.core.rate_limit import limiter
        from nutricoach.main import app

        assert app.state.limiter is limiter
