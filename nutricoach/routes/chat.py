"""
chat.py — Nutrition assistant endpoint.

Route:
  POST /api/v1/chat — one conversation turn, answered by Gemini.

Order of work per request:
  1. Fixed-window rate limit on the caller address (X-Forwarded-For).
     A rejected request stops here with 429: no body handling, no LLM call.
  2. Validate the message and resolve the profile (body first, then the
     stored profile of an authenticated caller).
  3. Build the system prompt, call Gemini, split the reply into sections.

Authentication is optional; anonymous callers must send user_profile.

Errors raised by the handler (400, 429, 502) share the body shape
{"error": "<message>"}; only schema validation keeps FastAPI's 422 detail.
"""

import logging

from fastapi import APIRouter, Depends

from nutricoach.ai.gemini_client import gemini_client
from nutricoach.core.chat_limiter import enforce_chat_rate_limit
from nutricoach.core.database import get_db
from nutricoach.core.security import OptionalUserId
from nutricoach.models.chat import ChatRequest, ChatResponse
from nutricoach.models.profile import NutritionProfile
from nutricoach.routes.profile import load_profile
from nutricoach.services.formatter import parse_sections
from nutricoach.services.prompt import build_system_prompt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])

_LLM_FAILURE = "Failed to get a response from the nutrition assistant"


class ChatError(Exception):
    """Chat failure rendered as {"error": message} by the app handler."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)


async def _resolve_profile(payload: ChatRequest, user_id: str | None, db) -> NutritionProfile:
    if payload.user_profile is not None:
        return payload.user_profile

    if user_id and db is not None:
        stored = await load_profile(db, user_id)
        if stored is not None:
            return stored

    raise ChatError(400, "User profile is required")


@router.post("", response_model=ChatResponse, dependencies=[Depends(enforce_chat_rate_limit)])
async def chat(payload: ChatRequest, user_id: OptionalUserId, db=Depends(get_db)):
    """Answer one user message with the profile as context."""
    message = payload.message.strip()
    if not message:
        raise ChatError(400, "Message is required")

    profile = await _resolve_profile(payload, user_id, db)
    system_prompt = build_system_prompt(profile)

    try:
        reply = await gemini_client.chat(system_prompt, payload.history, message)
    except Exception as exc:
        logger.error("Chat completion failed: %s", exc)
        raise ChatError(502, _LLM_FAILURE)

    if not reply or not reply.strip():
        logger.error("Chat completion returned no content")
        raise ChatError(502, _LLM_FAILURE)

    return ChatResponse(message=reply, sections=parse_sections(reply))
