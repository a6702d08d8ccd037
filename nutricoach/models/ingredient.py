"""
ingredient.py — Kitchen inventory schemas (per-user).
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class IngredientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    quantity: float = Field(ge=0)
    unit: str = Field(min_length=1, max_length=20)
    category: str = Field(default="other", max_length=50)
    expiry_date: Optional[date] = None


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=20)
    category: Optional[str] = Field(default=None, max_length=50)
    expiry_date: Optional[date] = None


class IngredientOut(BaseModel):
    id: str
    user_id: str
    name: str
    quantity: float
    unit: str
    category: str
    expiry_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
