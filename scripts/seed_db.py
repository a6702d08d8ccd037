#!/usr/bin/env python3
"""
seed_db.py — Populate MongoDB with sample recipes for local development.

Inserts:
  - A handful of catalogue recipes (the recipe browser and favourites demo)
  - The indexes the API expects (same as on app startup)

Usage:
    python scripts/seed_db.py

Reads MONGO_URI / MONGO_DB_NAME from the environment or .env, like the API.

Safe to re-run: recipes are upserted by name.
"""

import asyncio
import logging
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from nutricoach.core.config import settings
from nutricoach.core.database import ensure_indexes

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(message)s")
logger = logging.getLogger("seed_db")

SAMPLE_RECIPES = [
    {
        "name": "Quinoa Buddha Bowl",
        "ingredients": [
            {"name": "quinoa", "amount": 100, "unit": "g"},
            {"name": "chickpeas", "amount": 200, "unit": "g"},
            {"name": "sweet potato", "amount": 1, "unit": "pcs"},
            {"name": "kale", "amount": 100, "unit": "g"},
            {"name": "avocado", "amount": 1, "unit": "pcs"},
        ],
        "instructions": [
            "Cook quinoa according to package instructions",
            "Roast chickpeas and diced sweet potato with olive oil and spices",
            "Massage kale with olive oil and lemon juice",
            "Assemble bowl with quinoa base, roasted vegetables, and sliced avocado",
        ],
        "nutritional_info": {"calories": 450, "protein": 15, "carbs": 65, "fat": 18, "fiber": 12},
        "prep_time": 15,
        "cook_time": 20,
        "difficulty": "easy",
        "cuisine": "international",
        "dietary_categories": ["vegetarian", "vegan", "gluten-free"],
    },
    {
        "name": "Grilled Chicken Salad",
        "ingredients": [
            {"name": "chicken breast", "amount": 200, "unit": "g"},
            {"name": "mixed greens", "amount": 100, "unit": "g"},
            {"name": "cherry tomatoes", "amount": 100, "unit": "g"},
            {"name": "cucumber", "amount": 1, "unit": "pcs"},
            {"name": "olive oil", "amount": 2, "unit": "tbsp"},
        ],
        "instructions": [
            "Season chicken breast with salt, pepper, and herbs",
            "Grill chicken until cooked through",
            "Wash and chop vegetables",
            "Slice grilled chicken",
            "Assemble salad and drizzle with olive oil and balsamic vinegar",
        ],
        "nutritional_info": {"calories": 350, "protein": 35, "carbs": 10, "fat": 20, "fiber": 4},
        "prep_time": 10,
        "cook_time": 15,
        "difficulty": "easy",
        "cuisine": "international",
        "dietary_categories": ["high-protein", "low-carb", "gluten-free"],
    },
    {
        "name": "Red Lentil Dal",
        "ingredients": [
            {"name": "red lentils", "amount": 200, "unit": "g"},
            {"name": "onion", "amount": 1, "unit": "pcs"},
            {"name": "garlic", "amount": 3, "unit": "cloves"},
            {"name": "coconut milk", "amount": 200, "unit": "ml"},
            {"name": "curry powder", "amount": 2, "unit": "tsp"},
        ],
        "instructions": [
            "Soften chopped onion and garlic in a little oil",
            "Stir in curry powder and cook for one minute",
            "Add rinsed lentils, coconut milk and 500 ml water",
            "Simmer for 20 minutes until the lentils break down",
        ],
        "nutritional_info": {"calories": 410, "protein": 18, "carbs": 52, "fat": 14, "fiber": 10},
        "prep_time": 10,
        "cook_time": 25,
        "difficulty": "easy",
        "cuisine": "indian",
        "dietary_categories": ["vegetarian", "vegan", "high-protein"],
    },
    {
        "name": "Salmon Teriyaki with Brown Rice",
        "ingredients": [
            {"name": "salmon fillet", "amount": 150, "unit": "g"},
            {"name": "brown rice", "amount": 75, "unit": "g"},
            {"name": "soy sauce", "amount": 2, "unit": "tbsp"},
            {"name": "honey", "amount": 1, "unit": "tbsp"},
            {"name": "broccoli", "amount": 100, "unit": "g"},
        ],
        "instructions": [
            "Cook brown rice",
            "Whisk soy sauce and honey into a glaze",
            "Pan-sear salmon and brush with glaze during the last two minutes",
            "Steam broccoli and serve everything together",
        ],
        "nutritional_info": {"calories": 520, "protein": 36, "carbs": 55, "fat": 16, "fiber": 5},
        "prep_time": 10,
        "cook_time": 30,
        "difficulty": "medium",
        "cuisine": "japanese",
        "dietary_categories": ["high-protein", "dairy-free"],
    },
]


async def seed() -> None:
    client = AsyncIOMotorClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)
    db = client[settings.mongo_db_name]
    try:
        await ensure_indexes(db)
        now = datetime.now(tz=timezone.utc)
        for recipe in SAMPLE_RECIPES:
            await db["recipes"].update_one(
                {"name": recipe["name"]},
                {"$set": {**recipe, "updated_at": now}, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
        logger.info("Seeded %d recipes into %s", len(SAMPLE_RECIPES), settings.mongo_db_name)
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(seed())
