"""Shared FastAPI dependencies: settings, sessions, worker, caller identity."""

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gateway.config import Settings
from gateway.engine.settlement import SettlementWorker
from gateway.errors import Unauthorized
from gateway.security import TokenPayload, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session_factory() as session:
        yield session


def get_worker(request: Request) -> SettlementWorker:
    return request.app.state.settlement


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    config: Settings = Depends(get_settings),
) -> TokenPayload:
    """
    Identity of the caller from ``Authorization: Bearer <token>``.

    No token is 401 UNAUTHORIZED; a bad or expired token is 403 FORBIDDEN.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token is required")
    return decode_access_token(credentials.credentials, config)
