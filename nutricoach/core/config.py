"""
NutriCoach configuration, read from environment variables and `.env`.

pydantic-settings parses and validates every field at import time, so a
bad value (e.g. CHAT_RATE_LIMIT_MAX_REQUESTS=0) fails fast on startup
instead of on the first chat request.

New settings go here and in .env.example.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── MongoDB ───────────────────────────────────────────────────
    # Local dev default matches a plain `docker run mongo` container.
    mongo_uri: str = "mongodb://localhost:27017/nutricoach"
    mongo_db_name: str = "nutricoach"

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins for the web client.
    cors_origins_str: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── AI ────────────────────────────────────────────────────────
    # Get from https://aistudio.google.com/
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # When True, chat calls return a canned reply.
    # Always True in tests; set False in production with a real key.
    ai_mock_mode: bool = True

    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    chat_max_output_tokens: int = Field(default=1000, gt=0)

    # ─── Rate limiting ─────────────────────────────────────────────
    # Fixed window applied per caller address on POST /api/v1/chat.
    chat_rate_limit_window_ms: int = Field(default=60_000, gt=0)
    chat_rate_limit_max_requests: int = Field(default=20, gt=0)

    # slowapi limit string for /auth/register and /auth/login.
    auth_rate_limit: str = "10/minute"

    # ─── Auth ──────────────────────────────────────────────────────
    # IMPORTANT: Change jwt_secret to a long random string in production.
    # Generate: python -c "import secrets; print(secrets.token_hex(32))"
    jwt_secret: str = "changeme-in-production-use-a-long-random-string"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )


# Module-level singleton — import this everywhere instead of instantiating Settings()
settings = Settings()
