"""create users, categories and todos tables"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1d9a7e4b20"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("external_id", name="uq_users_external_id"),
    )
    op.create_index("ix_users_external_id", "users", ["external_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column(
            "color",
            sa.Enum(
                "blue",
                "green",
                "amber",
                "rose",
                "violet",
                "orange",
                name="category_color",
                native_enum=False,
                validate_strings=True,
            ),
            nullable=False,
            server_default="blue",
        ),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["owner_id"], ["users.id"], name="fk_categories_owner_id_users", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("name", "owner_id", name="uq_categories_name_owner_id"),
    )
    op.create_index("ix_categories_owner_id", "categories", ["owner_id"], unique=False)

    op.create_table(
        "todos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("text", sa.String(length=500), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("length(text) > 0", name="ck_todos_text_length"),
        sa.ForeignKeyConstraint(
            ["category_id"], ["categories.id"], name="fk_todos_category_id_categories", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_todos_owner_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_todos"),
    )
    op.create_index("ix_todos_owner_id_completed", "todos", ["owner_id", "completed"], unique=False)
    op.create_index("ix_todos_category_id", "todos", ["category_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_category_id", table_name="todos")
    op.drop_index("ix_todos_owner_id_completed", table_name="todos")
    op.drop_table("todos")
    op.drop_index("ix_categories_owner_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_users_external_id", table_name="users")
    op.drop_table("users")
