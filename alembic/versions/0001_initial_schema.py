"""Initial schema: users, articles, related.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(150), nullable=False),
        sa.Column("token", sa.String(255), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.execute(sa.schema.CreateSequence(sa.Sequence("articles_id_seq")))
    op.create_table(
        "articles",
        sa.Column(
            "id",
            sa.Integer(),
            sa.Sequence("articles_id_seq"),
            primary_key=True,
        ),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    )
    op.create_index("ix_articles_user_id", "articles", ["user_id"])

    op.create_table(
        "related",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("url", sa.String(2000), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_related_article_id", "related", ["article_id"])


def downgrade() -> None:
    op.drop_index("ix_related_article_id", table_name="related")
    op.drop_table("related")
    op.drop_index("ix_articles_user_id", table_name="articles")
    op.drop_table("articles")
    op.execute(sa.schema.DropSequence(sa.Sequence("articles_id_seq")))
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
