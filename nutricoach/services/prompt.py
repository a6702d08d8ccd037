"""
prompt.py — System prompt for the nutrition assistant.

The prompt carries the caller's whole profile so every reply respects their
restrictions, plus the ###Title### formatting rules that formatter.py parses.
"""

from enum import Enum
from typing import Optional

from nutricoach.models.profile import NutritionProfile

_NONE_LISTED = "None specified"
_NOT_SET = "Not specified"

FORMAT_RULES = """Format your responses using these rules:
1. Use "###Title###" to create clear section headers (e.g., ###Recipe### or ###Ingredients### or ###Instructions###)
2. For lists of ingredients, use bullet points with "-" at the start of each line
3. For step-by-step instructions, use numbered steps (1., 2., etc.)
4. Keep paragraphs short and use line breaks for better readability
5. For recipes, always structure them as:
   ###Recipe Name###
   Brief description or context
   ###Ingredients###
   - List ingredients with quantities
   ###Instructions###
   1. Step one
   2. Step two
   etc.
   ###Nutritional Notes### (if applicable)
   Additional information about nutrition, variations, or tips"""


def _join(values: list[str]) -> str:
    return ", ".join(values) if values else _NONE_LISTED


def _value(value: Optional[object], suffix: str = "") -> str:
    if value is None:
        return _NOT_SET
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{suffix}"


def profile_summary(profile: NutritionProfile) -> str:
    """One "- Label: value" line per profile field."""
    rows = [
        ("Dietary preferences", _join(profile.dietary_preferences)),
        ("Allergies", _join(profile.allergies)),
        ("Health goals", _join(profile.health_goals)),
        ("Medical conditions", _join(profile.medical_conditions)),
        ("Favorite cuisines", _join(profile.favorite_cuisines)),
        ("Disliked ingredients", _join(profile.disliked_ingredients)),
        ("Weight", _value(profile.weight_in_kg, " kg")),
        ("Height", _value(profile.height_in_cm, " cm")),
        ("Activity level", _value(profile.activity_level)),
        ("Cooking experience", _value(profile.cooking_experience)),
        ("Meal plan preference", _value(profile.meal_plan_preference)),
        ("Preferred cooking time", _value(profile.cooking_time)),
    ]
    return "\n".join(f"- {label}: {value}" for label, value in rows)


def build_system_prompt(profile: NutritionProfile) -> str:
    return (
        "You are a knowledgeable and helpful nutrition assistant. "
        "Here's important information about the user:\n"
        f"{profile_summary(profile)}\n\n"
        "Always consider these preferences and restrictions when providing advice. "
        "Be friendly and supportive while ensuring all recommendations are safe "
        "and appropriate for the user's profile.\n\n"
        f"{FORMAT_RULES}"
    )
