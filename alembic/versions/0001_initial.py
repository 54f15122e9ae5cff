"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("district", sa.String(length=100), nullable=True),
        sa.Column("sub_county", sa.String(length=100), nullable=True),
        sa.Column("school_id", sa.String(length=64), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "policy_assessments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("level", sa.String(length=16), nullable=False),
        sa.Column("assessor_name", sa.String(length=255), nullable=False),
        sa.Column("assessor_role", sa.String(length=255), nullable=False),
        sa.Column("assessor_email", sa.String(length=255), nullable=False),
        sa.Column("assessment_date", sa.Date(), nullable=False),
        sa.Column("school_id", sa.String(length=64), nullable=True),
        sa.Column("district_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("overall_score", sa.Integer(), nullable=False),
        sa.Column("overall_stage", sa.String(length=16), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "level IN ('school','district','national')", name="ck_assessment_level"
        ),
        sa.CheckConstraint(
            "status IN ('draft','completed','approved','archived')", name="ck_assessment_status"
        ),
    )
    op.create_index(
        "ix_policy_assessments_assessment_date", "policy_assessments", ["assessment_date"]
    )
    op.create_index("ix_policy_assessments_school_id", "policy_assessments", ["school_id"])
    op.create_index("ix_policy_assessments_district_id", "policy_assessments", ["district_id"])

    op.create_table(
        "sub_theme_scores",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assessment_id", sa.Integer(), nullable=False),
        sa.Column("theme_code", sa.String(length=64), nullable=False),
        sa.Column("sub_theme_code", sa.String(length=64), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("evidence", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_assessed", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["assessment_id"], ["policy_assessments.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assessment_id", "sub_theme_code", name="uq_sub_theme_score"),
        sa.CheckConstraint("score >= 0 AND score <= 100", name="ck_sub_theme_score_range"),
    )
    op.create_index("ix_sub_theme_scores_assessment_id", "sub_theme_scores", ["assessment_id"])

    op.create_table(
        "cross_cutting_scores",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assessment_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("evidence", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["assessment_id"], ["policy_assessments.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assessment_id", "code", name="uq_cross_cutting_score"),
        sa.CheckConstraint("score >= 0 AND score <= 100", name="ck_cross_cutting_score_range"),
    )
    op.create_index(
        "ix_cross_cutting_scores_assessment_id", "cross_cutting_scores", ["assessment_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_cross_cutting_scores_assessment_id", table_name="cross_cutting_scores")
    op.drop_table("cross_cutting_scores")
    op.drop_index("ix_sub_theme_scores_assessment_id", table_name="sub_theme_scores")
    op.drop_table("sub_theme_scores")
    op.drop_index("ix_policy_assessments_district_id", table_name="policy_assessments")
    op.drop_index("ix_policy_assessments_school_id", table_name="policy_assessments")
    op.drop_index("ix_policy_assessments_assessment_date", table_name="policy_assessments")
    op.drop_table("policy_assessments")
    op.drop_table("users")
