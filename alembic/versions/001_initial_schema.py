"""Initial schema: accounts, profiles, posts, unlocks, applications and payment records.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _tz() -> sa.DateTime:
    return sa.DateTime(timezone=True)


def upgrade() -> None:
    """Create all tables."""
    # --- Users & sessions ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("created_at", _tz(), nullable=False),
        sa.Column("last_login", _tz(), nullable=True),
        sa.Column("login_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_banned", sa.Boolean(), server_default="false", nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(128), nullable=False),
        sa.Column("issued_at", _tz(), nullable=False),
        sa.Column("expires_at", _tz(), nullable=False),
        sa.Column("revoked_at", _tz(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("replaced_by", sa.String(36), nullable=True),
    )
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"])
    op.create_index("ix_refresh_tokens_user_active", "refresh_tokens", ["user_id", "is_revoked"])

    # --- Profiles ---
    op.create_table(
        "user_profiles",
        sa.Column(
            "user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("role", sa.String(16), server_default="tutor", nullable=False),
        sa.Column("previous_role", sa.String(16), nullable=True),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(15), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("locality", sa.String(100), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", _tz(), nullable=True),
        sa.CheckConstraint("role IN ('tutor', 'student', 'admin')", name="ck_user_profiles_role"),
    )

    # --- Listings ---
    op.create_table(
        "tuition_posts",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("course", sa.String(100), nullable=True),
        sa.Column("subjects", postgresql.JSONB(), server_default="[]", nullable=False),
        sa.Column("board", sa.String(64), nullable=True),
        sa.Column("class_level", sa.String(64), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("locality", sa.String(100), nullable=True),
        sa.Column("timing", sa.String(16), nullable=False),
        sa.Column("gender_pref", sa.String(16), nullable=False),
        sa.Column("tuition_type", sa.String(32), nullable=False),
        sa.Column("price_type", sa.String(16), nullable=False),
        sa.Column("asked_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("posted_on", _tz(), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", _tz(), nullable=True),
        sa.CheckConstraint("price_type IN ('hourly', 'monthly', 'onetime')", name="ck_tuition_posts_price_type"),
        sa.CheckConstraint("asked_price > 0", name="ck_tuition_posts_asked_price_positive"),
    )
    op.create_index("ix_tuition_posts_posted_on", "tuition_posts", [sa.text("posted_on DESC")])
    op.create_index("ix_tuition_posts_student", "tuition_posts", ["student_id"])

    # --- Payment records ---
    op.create_table(
        "manual_payments",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            "payer_user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("purpose", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column(
            "target_post_id",
            sa.BigInteger(),
            sa.ForeignKey("tuition_posts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("proof_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("reviewed_by", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("purpose IN ('post_view', 'post_create')", name="ck_manual_payments_purpose"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_manual_payments_status"),
    )
    op.create_index("ix_manual_payments_status", "manual_payments", ["status"])
    op.create_index("ix_manual_payments_payer_user_id", "manual_payments", ["payer_user_id"])

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_email", sa.String(320), nullable=True),
        sa.Column("user_name", sa.String(100), nullable=True),
        sa.Column("user_phone", sa.String(15), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("transaction_type", sa.String(16), server_default="credit", nullable=False),
        sa.Column("payment_method", sa.String(16), server_default="upi", nullable=False),
        sa.Column("utr_number", sa.String(64), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("verified_by", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("verified_at", _tz(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("transaction_id", name="uq_wallet_transactions_transaction_id"),
        sa.CheckConstraint(
            "status IN ('pending', 'verified', 'rejected')", name="ck_wallet_transactions_status"
        ),
        sa.CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
    )
    op.create_index("ix_wallet_transactions_status", "wallet_transactions", ["status"])
    op.create_index("ix_wallet_transactions_user_id", "wallet_transactions", ["user_id"])

    # --- Unlocks & applications ---
    op.create_table(
        "unlocks",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("tutor_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "post_id", sa.BigInteger(), sa.ForeignKey("tuition_posts.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("provider", sa.String(32), nullable=True),
        sa.Column("status", sa.String(16), server_default="paid", nullable=False),
        sa.Column(
            "manual_payment_id",
            sa.BigInteger(),
            sa.ForeignKey("manual_payments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tutor_id", "post_id", name="uq_unlocks_tutor_post"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            "post_id", sa.BigInteger(), sa.ForeignKey("tuition_posts.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("tutor_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("quoted_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("price_type", sa.String(16), nullable=False),
        sa.Column("created_at", _tz(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_applications_post_id", "applications", ["post_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("applications")
    op.drop_table("unlocks")
    op.drop_index("ix_wallet_transactions_user_id", table_name="wallet_transactions")
    op.drop_index("ix_wallet_transactions_status", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")
    op.drop_index("ix_manual_payments_payer_user_id", table_name="manual_payments")
    op.drop_index("ix_manual_payments_status", table_name="manual_payments")
    op.drop_table("manual_payments")
    op.drop_index("ix_tuition_posts_student", table_name="tuition_posts")
    op.drop_index("ix_tuition_posts_posted_on", table_name="tuition_posts")
    op.drop_table("tuition_posts")
    op.drop_table("user_profiles")
    op.drop_index("ix_refresh_tokens_user_active", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_token_hash", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
