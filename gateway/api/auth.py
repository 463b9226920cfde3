"""
Authentication endpoints.

POST /auth/register - Create a user and issue a token.
POST /auth/login    - Verify credentials and issue a token.
GET  /auth/profile  - Current user's profile.
PUT  /auth/profile  - Update name and phone.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gateway.api.deps import get_current_user, get_session, get_settings
from gateway.api.serializers import success, user_to_dict
from gateway.config import Settings
from gateway.engine.accounts import authenticate, register_user
from gateway.engine.validation import validate_phone
from gateway.errors import NotFound, ValidationFailed
from gateway.models.wallet import User, local_now
from gateway.schemas import LoginRequest, ProfileUpdate, RegisterRequest
from gateway.security import TokenPayload, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User, config: Settings) -> dict:
    return {
        "user": user_to_dict(user),
        "token": create_access_token(user.id, user.email, config),
        "tokenType": "Bearer",
    }


async def _load_user(session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    return user


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    user = await register_user(
        session, body.email, body.password, body.name, body.phone, config
    )
    return success("User registered successfully", _token_response(user, config))


@router.post("/login")
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    user = await authenticate(session, body.email, body.password)
    return success("Login successful", _token_response(user, config))


@router.get("/profile")
async def get_profile(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    user = await _load_user(session, caller.user_id)
    return success("Profile retrieved successfully", {"user": user_to_dict(user)})


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    if not body.name or not body.phone:
        raise ValidationFailed("Name and phone are required")
    if not validate_phone(body.phone):
        raise ValidationFailed("Invalid phone number format")

    user = await _load_user(session, caller.user_id)
    user.name = body.name
    user.phone = body.phone
    user.updated_at = local_now(config.timezone_offset_minutes)
    await session.commit()

    return success("Profile updated successfully", {"user": user_to_dict(user)})
