"""
rate_limit.py — slowapi limiter for the credential endpoints.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library),
keyed by client address. Only /auth/register and /auth/login opt in, to
slow down credential stuffing; the chat endpoint has its own fixed-window
limiter in chat_limiter.py because it needs the exact retry time.

Usage in routes:
    @router.post("/login")
    @limiter.limit(settings.auth_rate_limit)
    async def login(request: Request, payload: LoginRequest): ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
