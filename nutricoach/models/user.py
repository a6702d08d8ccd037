"""
user.py — Pydantic schemas for account request / response bodies.

  UserCreate   — what the client sends to register
  UserOut      — what the API returns (never includes hashed_password)
  Token        — JWT response from /auth/login and /auth/register
  LoginRequest — credentials for /auth/login

The nutrition profile lives in its own collection (see profile.py).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    """Payload for POST /auth/register."""
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    display_name: Optional[str] = Field(default=None, max_length=64)


class UserOut(BaseModel):
    id: str
    email: EmailStr
    display_name: Optional[str] = None
    created_at: datetime


class Token(BaseModel):
    """Response body for successful login / register."""
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
