"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- surveys (one row per version, linked by parent_id)
- survey_questions
- activity_feed
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    # surveys table
    op.create_table(
        "surveys",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("version", sa.Numeric(10, 2), nullable=False, server_default=sa.text("1.0")),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("audience", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("changelog", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["surveys.id"], ondelete="SET NULL"),
    )
    op.create_index("surveys_org_id_idx", "surveys", ["org_id"])
    op.create_index("surveys_parent_id_idx", "surveys", ["parent_id"])
    op.create_index("surveys_created_at_idx", "surveys", ["created_at"])

    # survey_questions table
    op.create_table(
        "survey_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("survey_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False, server_default="short_text"),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("options", _json, nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("survey_id", "position", name="survey_questions_unique_position"),
    )
    op.create_index("survey_questions_survey_id_idx", "survey_questions", ["survey_id"])

    # activity_feed table
    op.create_table(
        "activity_feed",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("survey_id", sa.Uuid(), nullable=True),
        sa.Column("details", _json, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("activity_feed_org_id_idx", "activity_feed", ["org_id"])
    op.create_index("activity_feed_created_at_idx", "activity_feed", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("activity_feed")
    op.drop_table("survey_questions")
    op.drop_table("surveys")
