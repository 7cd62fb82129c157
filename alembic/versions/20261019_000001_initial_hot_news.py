"""create platforms, news and per-user tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlmodel.sql.sqltypes
from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "platforms",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "SOCIAL", "TECH", "FINANCE", "GENERAL", "OTHER", name="platformcategory"
            ),
            nullable=False,
        ),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("icon_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_platforms_name"), "platforms", ["name"], unique=False)
    op.create_index(
        op.f("ix_platforms_category"), "platforms", ["category"], unique=False
    )
    op.create_index(op.f("ix_platforms_enabled"), "platforms", ["enabled"], unique=False)

    op.create_table(
        "news",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("platform_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("url", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("api_score", sa.Integer(), nullable=False),
        sa.Column("final_score", sa.Float(), nullable=False),
        sa.Column("hot_rank", sa.Integer(), nullable=True),
        sa.Column("content_snippet", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("image_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("fetched_at", sa.DateTime(), nullable=False),
        sa.Column("fetched_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["platform_id"],
            ["platforms.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_news_platform_fetched_date",
        "news",
        ["platform_id", "fetched_date"],
        unique=False,
    )
    op.create_index(op.f("ix_news_final_score"), "news", ["final_score"], unique=False)
    op.create_index(op.f("ix_news_fetched_at"), "news", ["fetched_at"], unique=False)

    op.create_table(
        "user_favorites",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("news_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["news_id"], ["news.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "news_id", name="uq_user_favorites_user_news"),
    )
    op.create_index(
        op.f("ix_user_favorites_user_id"), "user_favorites", ["user_id"], unique=False
    )

    op.create_table(
        "search_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("keyword", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("search_count", sa.Integer(), nullable=False),
        sa.Column("last_searched_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_search_history_user_id"), "search_history", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_search_history_keyword"), "search_history", ["keyword"], unique=False
    )
    op.create_index(
        op.f("ix_search_history_last_searched_at"),
        "search_history",
        ["last_searched_at"],
        unique=False,
    )
    op.create_index(
        "uq_search_history_owner_keyword",
        "search_history",
        [sa.text("coalesce(user_id, '')"), "keyword"],
        unique=True,
    )

    op.create_table(
        "system_config",
        sa.Column("key", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("value", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "user_preferences",
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("platform_ids", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("user_preferences")
    op.drop_table("system_config")
    op.drop_index("uq_search_history_owner_keyword", table_name="search_history")
    op.drop_index(op.f("ix_search_history_last_searched_at"), table_name="search_history")
    op.drop_index(op.f("ix_search_history_keyword"), table_name="search_history")
    op.drop_index(op.f("ix_search_history_user_id"), table_name="search_history")
    op.drop_table("search_history")
    op.drop_index(op.f("ix_user_favorites_user_id"), table_name="user_favorites")
    op.drop_table("user_favorites")
    op.drop_index(op.f("ix_news_fetched_at"), table_name="news")
    op.drop_index(op.f("ix_news_final_score"), table_name="news")
    op.drop_index("ix_news_platform_fetched_date", table_name="news")
    op.drop_table("news")
    op.drop_index(op.f("ix_platforms_enabled"), table_name="platforms")
    op.drop_index(op.f("ix_platforms_category"), table_name="platforms")
    op.drop_index(op.f("ix_platforms_name"), table_name="platforms")
    op.drop_table("platforms")
    sa.Enum(name="platformcategory").drop(op.get_bind(), checkfirst=True)
