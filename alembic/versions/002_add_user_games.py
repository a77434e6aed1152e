"""Add the user_games library table.

Revision ID: 002_add_user_games
Revises: 001_initial_schema
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_add_user_games"
down_revision: str | None = "001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create user_games."""
    op.create_table(
        "user_games",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "game_id", name="uq_user_games_user_game"),
    )
    op.create_index("ix_user_games_user_id", "user_games", ["user_id"])


def downgrade() -> None:
    """Drop user_games."""
    op.drop_index("ix_user_games_user_id", "user_games")
    op.drop_table("user_games")
