"""
ingredients.py — Kitchen inventory routes.

Routes:
  GET    /api/v1/ingredients        — caller's ingredients, newest first
  POST   /api/v1/ingredients        — add an ingredient
  PATCH  /api/v1/ingredients/{id}   — partial update
  DELETE /api/v1/ingredients/{id}   — remove

Every query is scoped by user_id, so another user's ingredient id behaves
exactly like a missing one (404).
"""

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status

from nutricoach.core.database import get_db, parse_oid, require_db
from nutricoach.models.ingredient import IngredientCreate, IngredientOut, IngredientUpdate
from nutricoach.routes.auth import CurrentUserId

router = APIRouter(prefix="/api/v1/ingredients", tags=["ingredients"])


def _to_storage(fields: dict) -> dict:
    # BSON has no date type; store expiry as an ISO string
    expiry = fields.get("expiry_date")
    if isinstance(expiry, date):
        fields["expiry_date"] = expiry.isoformat()
    return fields


def _doc_to_ingredient(doc: dict) -> IngredientOut:
    return IngredientOut(
        id=str(doc["_id"]),
        user_id=doc["user_id"],
        name=doc["name"],
        quantity=doc.get("quantity", 0),
        unit=doc.get("unit", ""),
        category=doc.get("category", "other"),
        expiry_date=doc.get("expiry_date"),
        created_at=doc["created_at"],
        updated_at=doc.get("updated_at", doc["created_at"]),
    )


@router.get("", response_model=list[IngredientOut])
async def list_ingredients(user_id: CurrentUserId, db=Depends(get_db)):
    db = require_db(db)
    cursor = db["ingredients"].find({"user_id": user_id}).sort("created_at", -1)
    return [_doc_to_ingredient(doc) async for doc in cursor]


@router.post("", response_model=IngredientOut, status_code=status.HTTP_201_CREATED)
async def add_ingredient(payload: IngredientCreate, user_id: CurrentUserId, db=Depends(get_db)):
    db = require_db(db)
    now = datetime.now(tz=timezone.utc)
    doc = {
        **_to_storage(payload.model_dump()),
        "user_id": user_id,
        "created_at": now,
        "updated_at": now,
    }
    result = await db["ingredients"].insert_one(doc)
    doc["_id"] = result.inserted_id
    return _doc_to_ingredient(doc)


@router.patch("/{ingredient_id}", response_model=IngredientOut)
async def update_ingredient(
    ingredient_id: str,
    payload: IngredientUpdate,
    user_id: CurrentUserId,
    db=Depends(get_db),
):
    db = require_db(db)
    query = {"_id": parse_oid(ingredient_id, "Invalid ingredient ID format"), "user_id": user_id}
    doc = await db["ingredients"].find_one(query)
    if not doc:
        raise HTTPException(status_code=404, detail="Ingredient not found")

    # Only expiry_date can be cleared with null; the other fields are required
    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field == "expiry_date"
    }
    updates = _to_storage(updates)
    if updates:
        updates["updated_at"] = datetime.now(tz=timezone.utc)
        await db["ingredients"].update_one(query, {"$set": updates})
        doc = {**doc, **updates}
    return _doc_to_ingredient(doc)


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(ingredient_id: str, user_id: CurrentUserId, db=Depends(get_db)):
    db = require_db(db)
    query = {"_id": parse_oid(ingredient_id, "Invalid ingredient ID format"), "user_id": user_id}
    result = await db["ingredients"].delete_one(query)
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
