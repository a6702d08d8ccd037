"""
profile.py — Nutrition profile schemas.

  NutritionProfile        — full profile (PUT body, chat context)
  NutritionProfileUpdate  — settings editor (PATCH semantics)
  ProfileOut              — stored profile as returned by the API
  OnboardingStep1/2/3     — the fields each onboarding step owns
  OnboardingStatus        — wizard progress

List fields are cleaned on input: entries stripped, blanks dropped,
duplicates removed (first occurrence wins).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

ONBOARDING_STEPS = 3


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class CookingExperience(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class MealPlanPreference(str, Enum):
    BALANCED = "balanced"
    HIGH_PROTEIN = "high_protein"
    LOW_CARB = "low_carb"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"


class CookingTime(str, Enum):
    QUICK = "quick"
    MODERATE = "moderate"
    LENGTHY = "lengthy"


LIST_FIELDS = (
    "dietary_preferences",
    "allergies",
    "health_goals",
    "medical_conditions",
    "favorite_cuisines",
    "disliked_ingredients",
)


def clean_tags(values: Optional[list[str]]) -> Optional[list[str]]:
    if values is None:
        return None
    seen: list[str] = []
    for value in values:
        tag = value.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class _TagCleaning(BaseModel):
    @field_validator(*LIST_FIELDS, mode="after", check_fields=False)
    @classmethod
    def _clean(cls, v):
        return clean_tags(v)


class NutritionProfile(_TagCleaning):
    dietary_preferences: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    health_goals: list[str] = Field(default_factory=list)
    medical_conditions: list[str] = Field(default_factory=list)
    favorite_cuisines: list[str] = Field(default_factory=list)
    disliked_ingredients: list[str] = Field(default_factory=list)
    weight_in_kg: Optional[float] = Field(default=None, gt=0, le=700)
    height_in_cm: Optional[float] = Field(default=None, gt=0, le=300)
    activity_level: Optional[ActivityLevel] = None
    cooking_experience: Optional[CookingExperience] = None
    meal_plan_preference: Optional[MealPlanPreference] = None
    cooking_time: Optional[CookingTime] = None


class NutritionProfileUpdate(_TagCleaning):
    """Partial update — only fields present in the request body are changed."""
    dietary_preferences: Optional[list[str]] = None
    allergies: Optional[list[str]] = None
    health_goals: Optional[list[str]] = None
    medical_conditions: Optional[list[str]] = None
    favorite_cuisines: Optional[list[str]] = None
    disliked_ingredients: Optional[list[str]] = None
    weight_in_kg: Optional[float] = Field(default=None, gt=0, le=700)
    height_in_cm: Optional[float] = Field(default=None, gt=0, le=300)
    activity_level: Optional[ActivityLevel] = None
    cooking_experience: Optional[CookingExperience] = None
    meal_plan_preference: Optional[MealPlanPreference] = None
    cooking_time: Optional[CookingTime] = None


class ProfileOut(NutritionProfile):
    user_id: str
    onboarding_step: int = Field(default=0, ge=0, le=ONBOARDING_STEPS)
    onboarding_complete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Onboarding ────────────────────────────────────────────────────────────────

class OnboardingStep1(_TagCleaning):
    dietary_preferences: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)


class OnboardingStep2(_TagCleaning):
    health_goals: list[str] = Field(default_factory=list)
    activity_level: Optional[ActivityLevel] = None


class OnboardingStep3(_TagCleaning):
    cooking_experience: Optional[CookingExperience] = None
    meal_plan_preference: Optional[MealPlanPreference] = None
    favorite_cuisines: list[str] = Field(default_factory=list)


ONBOARDING_STEP_MODELS: dict[int, type[BaseModel]] = {
    1: OnboardingStep1,
    2: OnboardingStep2,
    3: OnboardingStep3,
}


class OnboardingStatus(BaseModel):
    onboarding_step: int
    onboarding_complete: bool
    next_step: Optional[int] = None

    @classmethod
    def from_step(cls, step: int) -> "OnboardingStatus":
        complete = step >= ONBOARDING_STEPS
        return cls(
            onboarding_step=step,
            onboarding_complete=complete,
            next_step=None if complete else step + 1,
        )
