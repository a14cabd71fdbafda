# backend/alembic/versions/001_time_blocks.py
"""Users, tasks and time blocks

Revision ID: 001_time_blocks
Revises:
Create Date: 2025-03-01 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_time_blocks"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        DECLARE
            extensions_schema_exists BOOLEAN;
            extension_installed BOOLEAN;
        BEGIN
            SELECT EXISTS (
                SELECT 1 FROM pg_namespace WHERE nspname = 'extensions'
            ) INTO extensions_schema_exists;

            SELECT EXISTS (
                SELECT 1 FROM pg_extension WHERE extname = '{extension_name}'
            ) INTO extension_installed;

            IF NOT extension_installed THEN
                IF extensions_schema_exists THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END
        $$;
        """
    )


def upgrade() -> None:
    """Create users, tasks and time_blocks tables."""
    print("Creating planner tables...")

    bind = op.get_bind()
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    is_postgres = dialect_name == "postgresql"

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    print("Creating time_blocks table...")
    op.create_table(
        "time_blocks",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("task_id", sa.String(26), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_synced", sa.DateTime(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_time < end_time", name="check_time_block_order"),
        comment="Scheduled [start_time, end_time) intervals on a user's calendar",
    )
    op.create_index(
        "idx_time_blocks_user_time",
        "time_blocks",
        ["user_id", "start_time", "end_time"],
    )
    op.create_index("idx_time_blocks_task_id", "time_blocks", ["task_id"])

    if is_postgres:
        _create_extension_prefer_extensions_schema("btree_gist")
        op.execute(
            """
            ALTER TABLE time_blocks
              ADD CONSTRAINT excl_time_blocks_no_overlap
              EXCLUDE USING gist (
                user_id WITH =,
                tsrange(start_time, end_time, '[)') WITH &&
              )
            """
        )

    print("Planner tables created successfully!")


def downgrade() -> None:
    """Drop time_blocks, tasks and users tables."""
    print("Dropping planner tables...")

    bind = op.get_bind()
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    is_postgres = dialect_name == "postgresql"

    if is_postgres:
        op.execute(
            "ALTER TABLE time_blocks DROP CONSTRAINT IF EXISTS excl_time_blocks_no_overlap"
        )

    op.drop_index("idx_time_blocks_task_id", table_name="time_blocks")
    op.drop_index("idx_time_blocks_user_time", table_name="time_blocks")
    op.drop_table("time_blocks")
    op.drop_table("tasks")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
