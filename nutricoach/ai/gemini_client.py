"""
GeminiClient — Async wrapper around the Google Generative AI SDK.

Two runtime modes (set via AI_MOCK_MODE env var):
  - MOCK mode (default): returns a canned, correctly formatted nutrition
    reply. Use for tests and local dev without an API key.
  - REAL mode: calls Gemini. Requires GEMINI_API_KEY.

The nutrition assistant is multi-turn: chat() takes the system prompt,
the prior turns and the new user message, and maps them onto Gemini's
`system_instruction` + `contents` (assistant turns use the "model" role).
"""

import logging
import os
from typing import Any, Iterable

# Python 3.14 + protobuf native extension can fail when importing Gemini deps.
os.environ.setdefault("PROTOCOL_BUFFERS_PYTHON_IMPLEMENTATION", "python")

import google.generativeai as genai

from nutricoach.core.config import settings

logger = logging.getLogger(__name__)

_ROLE_MAP = {"user": "user", "assistant": "model"}

_MOCK_REPLY = (
    "Here is an idea that fits your profile.\n"
    "###Greek Yogurt Power Bowl###\n"
    "A quick, protein-rich breakfast that keeps you full until lunch.\n"
    "###Ingredients###\n"
    "- 200 g plain Greek yogurt\n"
    "- 40 g rolled oats\n"
    "- 1 tbsp chia seeds\n"
    "- 80 g mixed berries\n"
    "###Instructions###\n"
    "1. Spoon the yogurt into a bowl.\n"
    "2. Top with oats, chia seeds and berries.\n"
    "3. Let it rest for 5 minutes before eating.\n"
    "###Nutritional Notes###\n"
    "[MOCK] Roughly 380 kcal and 25 g protein. "
    "Set AI_MOCK_MODE=false and provide GEMINI_API_KEY for real responses."
)


class GeminiClient:
    """
    Single entry point for LLM calls.

    Use the module-level `gemini_client` singleton; the SDK is configured
    once at construction.
    """

    def __init__(self) -> None:
        self.mock_mode = settings.ai_mock_mode
        self.model_name = settings.gemini_model

        if not self.mock_mode and not settings.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY not set — falling back to mock mode. "
                "Set AI_MOCK_MODE=true to silence this warning."
            )
            self.mock_mode = True

        if self.mock_mode:
            logger.info("GeminiClient initialised in MOCK mode")
        else:
            genai.configure(api_key=settings.gemini_api_key)
            logger.info("GeminiClient initialised in REAL mode (model: %s)", self.model_name)

    @staticmethod
    def build_contents(history: Iterable[Any], message: str) -> list[dict]:
        """
        Convert prior turns + the new message to Gemini `contents`.

        History items only need `.role` ("user" | "assistant") and `.content`.
        """
        contents = [
            {"role": _ROLE_MAP.get(turn.role, "user"), "parts": [turn.content]}
            for turn in history
        ]
        contents.append({"role": "user", "parts": [message]})
        return contents

    async def chat(
        self,
        system_prompt: str,
        history: Iterable[Any],
        message: str,
        **generation_kwargs: Any,
    ) -> str:
        """
        Generate the assistant's next reply.

        Args:
            system_prompt:       Instructions + user profile context.
            history:             Earlier turns, oldest first.
            message:             The new user message.
            **generation_kwargs: Override temperature / max_output_tokens.

        Returns:
            Reply text (may be empty if the model returned nothing).

        Raises:
            Exception: Propagates Gemini SDK errors in real mode.
        """
        if self.mock_mode:
            return _MOCK_REPLY

        config = {
            "temperature": settings.chat_temperature,
            "max_output_tokens": settings.chat_max_output_tokens,
            **generation_kwargs,
        }
        try:
            model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)
            response = await model.generate_content_async(
                self.build_contents(history, message),
                generation_config=config,
            )
            return response.text
        except Exception as exc:
            logger.error("Gemini API error (model=%s): %s", self.model_name, exc)
            raise


# Module-level singleton — import and use this everywhere
gemini_client = GeminiClient()
