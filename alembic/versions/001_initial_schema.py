"""Initial schema: games, players, communities, guides, events and profiles.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _text_array() -> postgresql.ARRAY:
    return postgresql.ARRAY(sa.String())


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "games",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("cover_url", sa.String(), nullable=True),
        sa.Column("hero_url", sa.String(), nullable=True),
        sa.Column("platforms", _text_array(), server_default="{}", nullable=False),
        sa.Column("genres", _text_array(), server_default="{}", nullable=False),
        sa.Column("tags", _text_array(), server_default="{}", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_games_slug", "games", ["slug"], unique=True)
    op.create_index("ix_games_title", "games", ["title"])
    op.create_index("ix_games_created_at", "games", ["created_at"])

    op.create_table(
        "players",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=True),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), server_default="offline", nullable=False),
        sa.Column("username", sa.String(50), nullable=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("website", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_players_user_id", "players", ["user_id"])
    # Availability poll: WHERE game_id = ? AND status IN (...) ORDER BY updated_at DESC
    op.create_index(
        "ix_players_game_status_updated", "players", ["game_id", "status", "updated_at"]
    )

    op.create_table(
        "communities",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("invite_url", sa.String(), nullable=False),
        sa.Column("category", sa.String(50), server_default="General", nullable=False),
        sa.Column("language", sa.String(50), server_default="English", nullable=False),
        sa.Column("online_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", _text_array(), server_default="{}", nullable=False),
        sa.Column("member_count", sa.Integer(), nullable=True),
        sa.Column("region", sa.String(50), nullable=True),
        sa.Column("voice_required", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_communities_game_id", "communities", ["game_id"])

    op.create_table(
        "guides",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_guides_game_id", "guides", ["game_id"])

    op.create_table(
        "game_versions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("version_name", sa.String(100), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "version_name", name="uq_game_versions_game_name"),
    )
    op.create_index("ix_game_versions_game_id", "game_versions", ["game_id"])

    op.create_table(
        "play_guides",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("summary", sa.Text(), server_default="", nullable=False),
        sa.Column("from_platform", sa.String(50), nullable=False),
        sa.Column("to_platform", sa.String(50), nullable=False),
        sa.Column("steps", sa.Text(), server_default="", nullable=False),
        sa.Column("last_updated", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("game_version_id", sa.String(36), nullable=True),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["game_version_id"], ["game_versions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_play_guides_game_id", "play_guides", ["game_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("game_version_id", sa.String(36), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", _text_array(), server_default="{}", nullable=False),
        sa.Column("players_needed", sa.Integer(), server_default="1", nullable=False),
        sa.Column("players_have", sa.Integer(), server_default="0", nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("language", sa.String(50), server_default="English", nullable=False),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["game_version_id"], ["game_versions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_game_id", "events", ["game_id"])
    op.create_index("ix_events_status_start", "events", ["status", "start_datetime"])

    op.create_table(
        "event_participants",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("event_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )

    op.create_table(
        "player_games",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("player_id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.Column("skill_level", sa.String(50), nullable=True),
        sa.Column("is_featured", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id", "game_id", name="uq_player_games_player_game"),
    )
    op.create_index("ix_player_games_player_id", "player_games", ["player_id"])

    op.create_table(
        "player_follows",
        sa.Column("follower_id", sa.String(36), nullable=False),
        sa.Column("followed_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["follower_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followed_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followed_id"),
    )
    op.create_index("ix_player_follows_followed_id", "player_follows", ["followed_id"])

    op.create_table(
        "player_lfg_posts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("player_id", sa.String(36), nullable=False),
        sa.Column("game_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("max_players", sa.Integer(), nullable=True),
        sa.Column("current_players", sa.Integer(), nullable=True),
        sa.Column("voice_required", sa.Boolean(), nullable=True),
        sa.Column("external_link", sa.String(), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_player_lfg_posts_player_id", "player_lfg_posts", ["player_id"])
    op.create_index("ix_player_lfg_posts_created_at", "player_lfg_posts", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("player_lfg_posts")
    op.drop_table("player_follows")
    op.drop_table("player_games")
    op.drop_table("event_participants")
    op.drop_index("ix_events_status_start", "events")
    op.drop_table("events")
    op.drop_table("play_guides")
    op.drop_table("game_versions")
    op.drop_table("guides")
    op.drop_table("communities")
    op.drop_index("ix_players_game_status_updated", "players")
    op.drop_table("players")
    op.drop_table("games")
