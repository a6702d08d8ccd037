"""
chat.py — Schemas for POST /api/v1/chat.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from nutricoach.models.profile import NutritionProfile


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    # Blank messages are rejected in the route with a 400, not a 422
    message: str = ""
    user_profile: Optional[NutritionProfile] = None
    history: list[ChatTurn] = Field(default_factory=list)


class LineKind(str, Enum):
    BULLET = "bullet"
    STEP = "step"
    TEXT = "text"


class ReplyLine(BaseModel):
    kind: LineKind
    text: str


class ReplySection(BaseModel):
    """One `###Title###` block of an assistant reply (title None for leading text)."""
    title: Optional[str] = None
    lines: list[ReplyLine] = Field(default_factory=list)


class ChatResponse(BaseModel):
    message: str
    sections: list[ReplySection]
