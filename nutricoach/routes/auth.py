"""
auth.py — Authentication routes.

Routes:
  POST /auth/register  — create new account
  POST /auth/login     — exchange credentials for JWT
  GET  /auth/me        — return current user (requires valid JWT)

register and login are throttled per client address by slowapi
(settings.auth_rate_limit). CurrentUser / CurrentUserId are the
dependencies every authenticated route in the app builds on.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pymongo.errors import DuplicateKeyError

from nutricoach.core.config import settings
from nutricoach.core.database import get_db
from nutricoach.core.rate_limit import limiter
from nutricoach.core.security import (
    BearerCredentials,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from nutricoach.models.user import LoginRequest, Token, UserCreate, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _doc_to_user_out(doc: dict) -> UserOut:
    return UserOut(
        id=str(doc["_id"]),
        email=doc["email"],
        display_name=doc.get("display_name"),
        created_at=doc.get("created_at", datetime.now(tz=timezone.utc)),
    )


def _credentials_error(detail: str = "Invalid or expired token") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _get_current_user(credentials: BearerCredentials, db=Depends(get_db)) -> UserOut:
    """
    Validate the Bearer token and load the (active) user it names.

    401 for a missing/invalid token or a deleted user; 503 without a database.
    """
    if not credentials:
        raise _credentials_error()

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise _credentials_error()

    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    from bson import ObjectId
    from bson.errors import InvalidId

    try:
        oid = ObjectId(user_id)
    except InvalidId:
        raise _credentials_error()

    doc = await db["users"].find_one({"_id": oid, "is_active": True})
    if not doc:
        raise _credentials_error()

    return _doc_to_user_out(doc)


CurrentUser = Annotated[UserOut, Depends(_get_current_user)]


def _current_user_id(user: CurrentUser) -> str:
    return user.id


CurrentUserId = Annotated[str, Depends(_current_user_id)]


# ── Routes ────────────────────────────────────────────────────────────────────

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
async def register(request: Request, payload: UserCreate, db=Depends(get_db)):
    """Create an account and return a JWT for it."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    duplicate = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="An account with this email already exists",
    )
    email = payload.email.lower()
    if await db["users"].find_one({"email": email}):
        raise duplicate

    user_doc = {
        "email": email,
        "display_name": payload.display_name,
        "hashed_password": hash_password(payload.password),
        "created_at": datetime.now(tz=timezone.utc),
        "is_active": True,
    }
    try:
        result = await db["users"].insert_one(user_doc)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email
        raise duplicate
    user_doc["_id"] = result.inserted_id

    token = create_access_token(str(result.inserted_id))
    return Token(access_token=token, user=_doc_to_user_out(user_doc))


@router.post("/login", response_model=Token)
@limiter.limit(settings.auth_rate_limit)
async def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    """Authenticate with email + password and return a JWT."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    doc = await db["users"].find_one({"email": payload.email.lower(), "is_active": True})
    if not doc or not verify_password(payload.password, doc["hashed_password"]):
        raise _credentials_error("Incorrect email or password")

    token = create_access_token(str(doc["_id"]))
    return Token(access_token=token, user=_doc_to_user_out(doc))


@router.get("/me", response_model=UserOut)
async def me(current_user: CurrentUser):
    """Return the currently authenticated user."""
    return current_user
