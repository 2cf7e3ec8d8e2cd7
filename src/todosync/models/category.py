"""Category models used to group tasks."""

from __future__ import annotations

from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin

CATEGORY_NAME_MAX_LENGTH = 30


class CategoryColor(str, Enum):
    """Fixed palette offered to categories."""

    BLUE = "blue"
    GREEN = "green"
    AMBER = "amber"
    ROSE = "rose"
    VIOLET = "violet"
    ORANGE = "orange"


class CategoryBase(SQLModel, table=False):
    """Shared attributes for category models."""

    name: str = Field(
        max_length=CATEGORY_NAME_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=CATEGORY_NAME_MAX_LENGTH), nullable=False),
    )
    color: CategoryColor = Field(
        default=CategoryColor.BLUE,
        sa_column=sa.Column(
            sa.Enum(
                CategoryColor,
                name="category_color",
                native_enum=False,
                validate_strings=True,
                values_callable=lambda palette: [member.value for member in palette],
            ),
            nullable=False,
            server_default=CategoryColor.BLUE.value,
        ),
    )
    owner_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


class Category(CategoryBase, TimestampMixin, table=True):
    """Persistent category; names are unique per owner."""

    __tablename__ = "categories"
    __table_args__ = (
        sa.UniqueConstraint("name", "owner_id", name="uq_categories_name_owner_id"),
        sa.Index("ix_categories_owner_id", "owner_id"),
    )

    id: int | None = Field(default=None, primary_key=True)


__all__ = ["CATEGORY_NAME_MAX_LENGTH", "Category", "CategoryBase", "CategoryColor"]
