"""
recipes.py — Recipe catalogue and favourites.

Routes:
  GET  /api/v1/recipes                 — list, sorted by name, filterable
  GET  /api/v1/recipes/favorites       — caller's favourite recipes (auth)
  GET  /api/v1/recipes/{id}            — single recipe
  POST /api/v1/recipes/{id}/favorite   — toggle favourite (auth)

Reads are public. Without a database the list degrades to [] so the
browse screen still renders; the other routes return 503.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from nutricoach.core.database import get_db, parse_oid, require_db
from nutricoach.models.recipe import Difficulty, FavoriteToggle, RecipeOut
from nutricoach.routes.auth import CurrentUserId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


def _doc_to_recipe(doc: dict) -> RecipeOut:
    return RecipeOut(id=str(doc["_id"]), **{k: v for k, v in doc.items() if k != "_id"})


async def _collect(cursor) -> list[RecipeOut]:
    items = []
    async for doc in cursor:
        try:
            items.append(_doc_to_recipe(doc))
        except Exception as exc:
            logger.warning("Skipping malformed recipe doc %s: %s", doc.get("_id"), exc)
    return items


@router.get("", response_model=list[RecipeOut])
async def list_recipes(
    cuisine: Optional[str] = Query(default=None),
    difficulty: Optional[Difficulty] = Query(default=None),
    dietary_category: list[str] = Query(default=[]),
    db=Depends(get_db),
):
    """List recipes; dietary_category may repeat and a recipe must match all of them."""
    if db is None:
        return []

    query: dict = {}
    if cuisine:
        query["cuisine"] = cuisine
    if difficulty:
        query["difficulty"] = difficulty.value
    categories = [c for c in dietary_category if c]
    if categories:
        query["dietary_categories"] = {"$all": categories}

    return await _collect(db["recipes"].find(query).sort("name", 1))


@router.get("/favorites", response_model=list[RecipeOut])
async def list_favorites(user_id: CurrentUserId, db=Depends(get_db)):
    db = require_db(db)
    recipe_ids = [
        fav["recipe_id"]
        async for fav in db["user_favorite_recipes"].find({"user_id": user_id})
    ]
    if not recipe_ids:
        return []
    return await _collect(db["recipes"].find({"_id": {"$in": recipe_ids}}).sort("name", 1))


@router.get("/{recipe_id}", response_model=RecipeOut)
async def get_recipe(recipe_id: str, db=Depends(get_db)):
    db = require_db(db)
    doc = await db["recipes"].find_one({"_id": parse_oid(recipe_id, "Invalid recipe ID format")})
    if not doc:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return _doc_to_recipe(doc)


@router.post("/{recipe_id}/favorite", response_model=FavoriteToggle)
async def toggle_favorite(recipe_id: str, user_id: CurrentUserId, db=Depends(get_db)):
    """Add the recipe to the caller's favourites, or remove it if already there."""
    db = require_db(db)
    oid = parse_oid(recipe_id, "Invalid recipe ID format")
    if not await db["recipes"].find_one({"_id": oid}):
        raise HTTPException(status_code=404, detail="Recipe not found")

    link = {"user_id": user_id, "recipe_id": oid}
    removed = await db["user_favorite_recipes"].delete_one(link)
    if removed.deleted_count:
        return FavoriteToggle(recipe_id=recipe_id, favorited=False)

    await db["user_favorite_recipes"].update_one(link, {"$setOnInsert": link}, upsert=True)
    return FavoriteToggle(recipe_id=recipe_id, favorited=True)
