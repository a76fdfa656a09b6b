"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("role in ('student', 'counselor', 'admin')", name="ck_users_role"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "student_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("academic_level", sa.String(length=50), nullable=True),
        sa.Column("gpa", sa.Numeric(5, 2), nullable=True),
        sa.Column("desired_major", sa.String(length=255), nullable=True),
        sa.Column("destination_country", sa.String(length=100), nullable=True),
        sa.Column("preferred_countries", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("budget_range", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("test_scores", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "universities",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("specialization", sa.Text(), nullable=True),
        sa.Column("tuition_fees", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("acceptance_rate", sa.String(length=20), nullable=True),
        sa.Column("admission_requirements", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("world_ranking", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_universities_country", "universities", ["country"], unique=False)
    op.create_index("ix_universities_name_country", "universities", ["name", "country"], unique=True)

    op.create_table(
        "ai_matching_results",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("university_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("match_score", sa.String(length=8), nullable=False),
        sa.Column("reasoning", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("model_version", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "university_id", name="uq_ai_matching_results_user_university"),
    )
    op.create_index("ix_ai_matching_results_user_id", "ai_matching_results", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_ai_matching_results_user_id", table_name="ai_matching_results")
    op.drop_table("ai_matching_results")

    op.drop_index("ix_universities_name_country", table_name="universities")
    op.drop_index("ix_universities_country", table_name="universities")
    op.drop_table("universities")

    op.drop_table("student_profiles")
    op.drop_table("users")
