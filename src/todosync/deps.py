"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Header
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings, get_settings
from .core.security import CredentialError, extract_bearer, resolve_identity
from .db.session import get_session
from .errors import ServerError, UnauthorizedError
from .models import User
from .services import UserService

SettingsDependency = Annotated[Settings, Depends(get_settings)]


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session():
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_user(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the bearer credential to a user row, upserting on first sight."""

    try:
        identity = resolve_identity(extract_bearer(authorization), settings)
    except CredentialError as exc:
        raise UnauthorizedError(str(exc)) from exc

    return await UserService(session).upsert_identity(identity)


CurrentUserDependency = Annotated[User, Depends(get_current_user)]


def require_user_id(user: User) -> int:
    if user.id is None:  # pragma: no cover - guarded by get_current_user
        raise ServerError("Authenticated user is missing an identifier.")
    return user.id


__all__ = [
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "SettingsDependency",
    "get_current_user",
    "get_db_session",
    "require_user_id",
]
