"""
recipe.py — Recipe catalogue schemas.

Recipes are shared (not per-user); users mark favourites, which are stored
as (user_id, recipe_id) pairs in user_favorite_recipes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RecipeIngredient(BaseModel):
    name: str
    amount: float = Field(ge=0)
    unit: str


class NutritionalInfo(BaseModel):
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)


class RecipeOut(BaseModel):
    id: str
    name: str
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    nutritional_info: NutritionalInfo
    prep_time: int = Field(ge=0, description="Minutes")
    cook_time: int = Field(ge=0, description="Minutes")
    difficulty: Difficulty
    cuisine: str
    dietary_categories: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FavoriteToggle(BaseModel):
    recipe_id: str
    favorited: bool
