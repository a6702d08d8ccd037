"""
profile.py — Nutrition profile, settings editor and onboarding wizard.

Routes:
  GET   /api/v1/profile                    — caller's profile (404 → show onboarding)
  PUT   /api/v1/profile                    — create or replace the profile
  PATCH /api/v1/profile                    — settings editor, only sent fields change
  GET   /api/v1/profile/onboarding         — wizard progress
  POST  /api/v1/profile/onboarding/{step}  — save one wizard step (1–3)

The onboarding wizard is linear: step n is accepted once step n-1 has been
saved. Going back to an earlier step edits its fields but never lowers
onboarding_step.

All routes require a valid Bearer token.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from nutricoach.core.database import get_db, require_db
from nutricoach.models.profile import (
    LIST_FIELDS,
    ONBOARDING_STEP_MODELS,
    ONBOARDING_STEPS,
    NutritionProfile,
    NutritionProfileUpdate,
    OnboardingStatus,
    ProfileOut,
)
from nutricoach.routes.auth import CurrentUserId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])

_PROFILE_FIELDS = tuple(NutritionProfile.model_fields)


def doc_to_profile(doc: dict) -> ProfileOut:
    step = int(doc.get("onboarding_step", 0))
    return ProfileOut(
        **{field: doc[field] for field in _PROFILE_FIELDS if doc.get(field) is not None},
        user_id=doc["user_id"],
        onboarding_step=step,
        onboarding_complete=step >= ONBOARDING_STEPS,
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


async def load_profile(db, user_id: str) -> ProfileOut | None:
    """Stored profile for *user_id*, or None. Shared with the chat route."""
    doc = await db["user_profiles"].find_one({"user_id": user_id})
    return doc_to_profile(doc) if doc else None


async def _save_fields(db, user_id: str, fields: dict[str, Any], **extra: Any) -> ProfileOut:
    """Upsert *fields* into the caller's profile document and return it."""
    now = datetime.now(tz=timezone.utc)
    await db["user_profiles"].update_one(
        {"user_id": user_id},
        {
            "$set": {**fields, **extra, "updated_at": now},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True,
    )
    return await load_profile(db, user_id)


# ── Profile ───────────────────────────────────────────────────────────────────

@router.get("", response_model=ProfileOut)
async def get_profile(user_id: CurrentUserId, db=Depends(get_db)):
    profile = await load_profile(require_db(db), user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("", response_model=ProfileOut)
async def replace_profile(payload: NutritionProfile, user_id: CurrentUserId, db=Depends(get_db)):
    """Replace every profile field. Onboarding progress is left as is."""
    db = require_db(db)
    return await _save_fields(db, user_id, payload.model_dump(mode="json"))


@router.patch("", response_model=ProfileOut)
async def update_profile(payload: NutritionProfileUpdate, user_id: CurrentUserId, db=Depends(get_db)):
    """Partial update — only fields present in the body are changed; null clears a scalar."""
    db = require_db(db)
    if await load_profile(db, user_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    updates = payload.model_dump(mode="json", exclude_unset=True)
    # A null list means "clear it"
    for field, value in updates.items():
        if value is None and field in LIST_FIELDS:
            updates[field] = []
    if not updates:
        return await load_profile(db, user_id)
    return await _save_fields(db, user_id, updates)


# ── Onboarding ────────────────────────────────────────────────────────────────

@router.get("/onboarding", response_model=OnboardingStatus)
async def onboarding_status(user_id: CurrentUserId, db=Depends(get_db)):
    profile = await load_profile(require_db(db), user_id)
    return OnboardingStatus.from_step(profile.onboarding_step if profile else 0)


@router.post("/onboarding/{step}", response_model=ProfileOut)
async def save_onboarding_step(
    user_id: CurrentUserId,
    step: int = Path(ge=1, le=ONBOARDING_STEPS),
    payload: dict[str, Any] = Body(default={}),
    db=Depends(get_db),
):
    """Save the fields owned by wizard *step* and advance progress."""
    db = require_db(db)

    try:
        fields = ONBOARDING_STEP_MODELS[step].model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False))

    current = await load_profile(db, user_id)
    completed = current.onboarding_step if current else 0
    if step > completed + 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Complete onboarding step {completed + 1} first",
        )

    progress = max(completed, step)
    profile = await _save_fields(
        db, user_id, fields.model_dump(mode="json"), onboarding_step=progress
    )
    if progress == ONBOARDING_STEPS and completed < ONBOARDING_STEPS:
        logger.info("User %s completed onboarding", user_id)
    return profile
