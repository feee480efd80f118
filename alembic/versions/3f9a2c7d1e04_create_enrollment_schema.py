"""create enrollment schema

Revision ID: 3f9a2c7d1e04
Revises:
Create Date: 2026-10-18 10:00:00.000000

Creates the submission workflow tables (submissions, group_links), the
member registry, the configuration singleton and the admin credential and
session tables.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a2c7d1e04"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SUBMISSION_STATUS = sa.Enum(
    "PENDING_REVIEW",
    "AWAITING_PAYMENT",
    "PENDING",
    "APPROVED",
    "REJECTED",
    "PROJECT_REJECTED",
    name="submission_status",
)
PROOF_METHOD = sa.Enum("SCREENSHOT", "TRANSACTION_ID", name="proof_method")


def upgrade() -> None:
    """Create all enrollment tables."""
    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("whatsapp", sa.String(length=10), nullable=False),
        sa.Column("project", sa.Text(), nullable=False),
        sa.Column("proof_method", PROOF_METHOD, nullable=True),
        sa.Column("proof_data", sa.LargeBinary(), nullable=True),
        sa.Column("proof_mime", sa.String(length=100), nullable=True),
        sa.Column("transaction_id", sa.String(length=64), nullable=True),
        sa.Column("payment_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", SUBMISSION_STATUS, nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submissions_email", "submissions", ["email"])
    op.create_index("ix_submissions_status", "submissions", ["status"])
    op.create_index("ix_submissions_created_at", "submissions", ["created_at"])

    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("submission_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("whatsapp", sa.String(length=10), nullable=False),
        sa.Column("project", sa.Text(), nullable=False),
        sa.Column(
            "confirmed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("submission_id"),
    )
    op.create_index("ix_members_confirmed_at", "members", ["confirmed_at"])

    op.create_table(
        "group_links",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("submission_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("link", sa.Text(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "enrollment_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("max_places", sa.Integer(), nullable=False),
        sa.Column("session_open", sa.Boolean(), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("max_places >= 1", name="ck_enrollment_config_max_places"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "admin_credentials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "admin_sessions",
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("client_ip", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("token_hash"),
    )
    op.create_index("ix_admin_sessions_expires_at", "admin_sessions", ["expires_at"])


def downgrade() -> None:
    """Drop all enrollment tables and enum types."""
    op.drop_index("ix_admin_sessions_expires_at", table_name="admin_sessions")
    op.drop_table("admin_sessions")
    op.drop_table("admin_credentials")
    op.drop_table("enrollment_config")
    op.drop_table("group_links")
    op.drop_index("ix_members_confirmed_at", table_name="members")
    op.drop_table("members")
    op.drop_index("ix_submissions_created_at", table_name="submissions")
    op.drop_index("ix_submissions_status", table_name="submissions")
    op.drop_index("ix_submissions_email", table_name="submissions")
    op.drop_table("submissions")

    SUBMISSION_STATUS.drop(op.get_bind(), checkfirst=True)
    PROOF_METHOD.drop(op.get_bind(), checkfirst=True)
