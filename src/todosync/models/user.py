"""Owner accounts keyed by their external identity subject."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin


class UserBase(SQLModel, table=False):
    """Shared attributes for user models."""

    external_id: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False, unique=True),
    )
    email: str | None = Field(
        default=None,
        max_length=320,
        sa_column=sa.Column(sa.String(length=320), nullable=True),
    )
    name: str | None = Field(
        default=None,
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=True),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent owner record, upserted on first contact."""

    __tablename__ = "users"
    __table_args__ = (sa.Index("ix_users_external_id", "external_id"),)

    id: int | None = Field(default=None, primary_key=True)


__all__ = ["User", "UserBase"]
