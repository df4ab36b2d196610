"""Initial catalog schema.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

This migration:
1. Creates the users table (owners, provisioned externally)
2. Creates the memes table with feed and owner indexes
3. Creates the tags table with a unique lowercased name
4. Creates the meme_tags association with cascading foreign keys
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    """Create catalog tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("user", "admin", name="userrole"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="userstatus"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "memes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("image_width", sa.Integer(), nullable=True),
        sa.Column("image_height", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_memes_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_memes"),
    )
    op.create_index("ix_memes_created_at", "memes", ["created_at"])
    op.create_index("ix_memes_user_id", "memes", ["user_id"])

    op.create_table(
        "tags",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )

    op.create_table(
        "meme_tags",
        sa.Column("meme_id", sa.String(36), nullable=False),
        sa.Column("tag_id", sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(
            ["meme_id"], ["memes.id"], ondelete="CASCADE", name="fk_meme_tags_meme_id_memes"
        ),
        sa.ForeignKeyConstraint(
            ["tag_id"], ["tags.id"], ondelete="CASCADE", name="fk_meme_tags_tag_id_tags"
        ),
        sa.PrimaryKeyConstraint("meme_id", "tag_id", name="pk_meme_tags"),
    )
    op.create_index("ix_meme_tags_tag_id", "meme_tags", ["tag_id"])


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_index("ix_meme_tags_tag_id", table_name="meme_tags")
    op.drop_table("meme_tags")
    op.drop_table("tags")
    op.drop_index("ix_memes_user_id", table_name="memes")
    op.drop_index("ix_memes_created_at", table_name="memes")
    op.drop_table("memes")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS userstatus")
        op.execute("DROP TYPE IF EXISTS userrole")
