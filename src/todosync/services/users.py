"""Service layer orchestrating user-related repository operations."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.security import Identity
from ..models import User
from ..repositories import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = UserRepository(session)

    async def upsert_identity(self, identity: Identity) -> User:
        """Return the user bound to ``identity``, creating it on first contact.

        Existing rows are returned untouched. Two first requests racing on the
        same subject both end up with the row that won the unique constraint.
        """
        user = await self._repository.get_by_external_id(identity.subject)
        if user is not None:
            return user

        user = User(external_id=identity.subject, email=identity.email, name=identity.name)
        try:
            await self._repository.add(user)
            await self._session.commit()
        except IntegrityError:
            await self._session.rollback()
            existing = await self._repository.get_by_external_id(identity.subject)
            if existing is None:
                raise
            return existing
        await self._repository.refresh(user)
        logger.info("Registered user for new identity", extra={"user_id": user.id})
        return user
