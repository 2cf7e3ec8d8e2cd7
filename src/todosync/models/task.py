"""Task domain models built with SQLModel."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin

TASK_TEXT_MAX_LENGTH = 500


class TaskBase(SQLModel, table=False):
    """Shared attributes for task models."""

    text: str = Field(
        max_length=TASK_TEXT_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TASK_TEXT_MAX_LENGTH), nullable=False),
    )
    completed: bool = Field(
        default=False,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    notes: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.Text(), nullable=True),
    )
    order: int = Field(
        default=0,
        sa_column=sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    category_id: int | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    owner_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


class Task(TaskBase, TimestampMixin, table=True):
    """Persistent task row."""

    __tablename__ = "todos"
    __table_args__ = (
        sa.CheckConstraint("length(text) > 0", name="ck_todos_text_length"),
        sa.Index("ix_todos_owner_id_completed", "owner_id", "completed"),
        sa.Index("ix_todos_category_id", "category_id"),
    )

    id: int | None = Field(default=None, primary_key=True)


__all__ = ["TASK_TEXT_MAX_LENGTH", "Task", "TaskBase"]
