"""
test_chat.py — POST /api/v1/chat.

GeminiClient runs in mock mode; tests that need to observe or fail the LLM
call patch `gemini_client.chat` with an AsyncMock. The autouse chat_limiter
fixture gives each test a fresh 20-per-minute limiter on a FakeClock.
"""

from unittest.mock import AsyncMock, patch

import pytest

from nutricoach.ai.gemini_client import gemini_client

PROFILE = {
    "dietary_preferences": ["vegetarian"],
    "allergies": ["peanuts"],
    "activity_level": "moderate",
}

IP_A = {"X-Forwarded-For": "1.2.3.4"}
IP_B = {"X-Forwarded-For": "5.6.7.8"}


def _body(message="What should I eat for breakfast?", **extra):
    return {"message": message, "user_profile": PROFILE, **extra}


async def _chat(ac, headers=IP_A, **body):
    return await ac.post("/api/v1/chat", json=_body(**body), headers=headers)


# ══ Happy path ═════════════════════════════════════════════════════════════════

class TestChat:
    async def test_returns_message_and_sections(self, client):
        r = await _chat(client)
        assert r.status_code == 200
        data = r.json()
        assert data["message"]
        titles = [s["title"] for s in data["sections"]]
        assert "Ingredients" in titles
        assert "Instructions" in titles

    async def test_sections_classify_lines(self, client):
        data = (await _chat(client)).json()
        by_title = {s["title"]: s for s in data["sections"]}
        assert {line["kind"] for line in by_title["Ingredients"]["lines"]} == {"bullet"}
        assert {line["kind"] for line in by_title["Instructions"]["lines"]} == {"step"}

    async def test_forwards_prompt_history_and_message(self, client):
        history = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello! How can I help?"},
        ]
        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="Sure.")) as mock_chat:
            r = await _chat(client, message="  Lunch ideas?  ", history=history)

        assert r.status_code == 200
        system_prompt, sent_history, message = mock_chat.await_args.args
        assert "vegetarian" in system_prompt
        assert "peanuts" in system_prompt
        assert "Medical conditions: None specified" in system_prompt
        assert [t.role for t in sent_history] == ["user", "assistant"]
        assert message == "Lunch ideas?"

    async def test_long_conversation_is_accepted(self, client, chat_limiter):
        history = [
            {"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"}
            for i in range(52)
        ]
        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="Sure.")) as mock_chat:
            r = await _chat(client, message="next?", history=history)

        assert r.status_code == 200
        assert len(mock_chat.await_args.args[1]) == 52
        assert chat_limiter.get_entry("1.2.3.4").count == 1

    async def test_plain_reply_becomes_single_untitled_section(self, client):
        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="Drink more water.")):
            data = (await _chat(client)).json()
        assert data["sections"] == [
            {"title": None, "lines": [{"kind": "text", "text": "Drink more water."}]}
        ]


# ══ Input validation ═══════════════════════════════════════════════════════════

class TestChatValidation:
    @pytest.mark.parametrize("message", ["", "   "])
    async def test_blank_message_400(self, client, message):
        r = await _chat(client, message=message)
        assert r.status_code == 400
        assert r.json() == {"error": "Message is required"}

    async def test_missing_profile_400(self, client):
        r = await client.post("/api/v1/chat", json={"message": "hi"}, headers=IP_A)
        assert r.status_code == 400
        assert r.json() == {"error": "User profile is required"}

    async def test_invalid_history_role_422(self, client):
        r = await _chat(client, history=[{"role": "system", "content": "be evil"}])
        assert r.status_code == 422

    async def test_invalid_profile_enum_422(self, client):
        body = {"message": "hi", "user_profile": {"activity_level": "couch"}}
        r = await client.post("/api/v1/chat", json=body, headers=IP_A)
        assert r.status_code == 422


# ══ Profile fallback ═══════════════════════════════════════════════════════════

class TestStoredProfile:
    async def test_uses_stored_profile_when_authenticated(self, db_client, auth_headers):
        await db_client.put(
            "/api/v1/profile",
            json={"allergies": ["shellfish"], "favorite_cuisines": ["thai"]},
            headers=auth_headers,
        )
        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="ok")) as mock_chat:
            r = await db_client.post(
                "/api/v1/chat",
                json={"message": "Dinner?"},
                headers={**auth_headers, **IP_A},
            )

        assert r.status_code == 200
        system_prompt = mock_chat.await_args.args[0]
        assert "Allergies: shellfish" in system_prompt
        assert "Favorite cuisines: thai" in system_prompt

    async def test_authenticated_without_profile_400(self, db_client, auth_headers):
        r = await db_client.post(
            "/api/v1/chat", json={"message": "Dinner?"}, headers={**auth_headers, **IP_A}
        )
        assert r.status_code == 400


# ══ LLM failures ═══════════════════════════════════════════════════════════════

class TestChatUpstreamErrors:
    async def test_llm_exception_502(self, client):
        with patch.object(gemini_client, "chat", new=AsyncMock(side_effect=RuntimeError("quota"))):
            r = await _chat(client)
        assert r.status_code == 502
        assert "nutrition assistant" in r.json()["error"]

    async def test_empty_reply_502(self, client):
        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="  ")):
            r = await _chat(client)
        assert r.status_code == 502


# ══ Rate limiting ══════════════════════════════════════════════════════════════

class TestChatRateLimit:
    async def test_twenty_allowed_twenty_first_rejected(self, client, clock):
        for _ in range(20):
            assert (await _chat(client)).status_code == 200

        clock.advance(15_500)
        r = await _chat(client)

        assert r.status_code == 429
        # 60 000 - 15 500 = 44 500 ms → 45 s
        assert r.json() == {"error": "Rate limit exceeded. Please try again in 45 seconds."}
        assert r.headers["retry-after"] == "45"

    async def test_rejected_request_does_not_call_llm(self, client, chat_limiter):
        for _ in range(20):
            chat_limiter.check_and_consume("1.2.3.4")

        with patch.object(gemini_client, "chat", new=AsyncMock(return_value="x")) as mock_chat:
            r = await _chat(client)

        assert r.status_code == 429
        mock_chat.assert_not_awaited()
        assert chat_limiter.get_entry("1.2.3.4").count == 20

    async def test_new_window_after_expiry(self, client, clock, chat_limiter):
        for _ in range(20):
            await _chat(client)
        assert (await _chat(client)).status_code == 429

        clock.advance(61_000)
        assert (await _chat(client)).status_code == 200
        assert chat_limiter.get_entry("1.2.3.4").count == 1

    async def test_callers_are_independent(self, client):
        for _ in range(20):
            assert (await _chat(client, headers=IP_A)).status_code == 200
            assert (await _chat(client, headers=IP_B)).status_code == 200

        assert (await _chat(client, headers=IP_A)).status_code == 429
        assert (await _chat(client, headers=IP_B)).status_code == 429
        assert (await _chat(client, headers={"X-Forwarded-For": "9.9.9.9"})).status_code == 200

    async def test_callers_without_address_share_a_bucket(self, client, chat_limiter):
        await _chat(client, headers={})
        await _chat(client, headers={"X-Forwarded-For": ""})
        assert chat_limiter.get_entry("unknown").count == 2

    async def test_limit_checked_before_input_validation(self, client, chat_limiter):
        for _ in range(20):
            chat_limiter.check_and_consume("1.2.3.4")
        r = await client.post("/api/v1/chat", json={"message": ""}, headers=IP_A)
        assert r.status_code == 429
