"""User registration, credential checks and the default demo user."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gateway.config import Settings
from gateway.engine.validation import MIN_PASSWORD_LENGTH, validate_email, validate_phone
from gateway.errors import Conflict, Unauthorized, ValidationFailed
from gateway.models.wallet import User, local_now
from gateway.security import hash_password, verify_password

logger = logging.getLogger("gateway.accounts")

DEFAULT_USER_NAME = "Test User"
DEFAULT_USER_PHONE = "9876543210"


async def register_user(
    session: AsyncSession,
    email: str | None,
    password: str | None,
    name: str | None,
    phone: str | None,
    config: Settings,
) -> User:
    """
    Create a user with the default wallet balance.

    Raises:
        ValidationFailed: Missing field, bad email/phone or short password.
        Conflict: The email is already registered (USER_EXISTS).
    """
    if not email or not password or not name or not phone:
        raise ValidationFailed("All fields are required")
    if not validate_email(email):
        raise ValidationFailed("Invalid email format")
    if not validate_phone(phone):
        raise ValidationFailed("Invalid phone number format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    existing = await session.scalar(select(User.id).where(User.email == email))
    if existing is not None:
        raise Conflict("User with this email already exists", code="USER_EXISTS")

    now = local_now(config.timezone_offset_minutes)
    user = User(
        email=email,
        name=name,
        phone=phone,
        password_hash=hash_password(password, iterations=config.password_hash_iterations),
        wallet_balance=config.default_wallet_balance,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("User with this email already exists", code="USER_EXISTS")

    logger.info("Registered user %s (%s)", user.id, email)
    return user


async def authenticate(session: AsyncSession, email: str | None, password: str | None) -> User:
    """
    Raises:
        ValidationFailed: Missing email or password.
        Unauthorized: Unknown email or wrong password (INVALID_CREDENTIALS).
    """
    if not email or not password:
        raise ValidationFailed("Email and password are required")

    user = await session.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid credentials", code="INVALID_CREDENTIALS")
    return user


async def ensure_default_user(session_factory: async_sessionmaker, config: Settings) -> bool:
    """
    Create the demo user if it does not exist yet.

    Returns:
        True if the user was created.
    """
    async with session_factory() as session:
        existing = await session.scalar(
            select(User.id).where(User.email == config.default_user_email)
        )
        if existing is not None:
            return False
        await register_user(
            session,
            email=config.default_user_email,
            password=config.default_user_password,
            name=DEFAULT_USER_NAME,
            phone=DEFAULT_USER_PHONE,
            config=config,
        )
    logger.info("Default test user created: %s", config.default_user_email)
    return True
