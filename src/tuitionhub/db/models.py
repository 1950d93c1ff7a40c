"""ORM models for accounts, listings, unlocks and payment records.

Every table is owned by this service; Alembic revision 001 creates them.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tuitionhub.db.base import Base, BigIntPK

JsonList = JSON().with_variant(JSONB, "postgresql")
Money = Numeric(12, 2, asdecimal=False)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Identity record: credentials and login metadata."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    profile: Mapped[Profile | None] = relationship("Profile", back_populates="user", uselist=False)
    refresh_tokens: Mapped[list[RefreshToken]] = relationship("RefreshToken", back_populates="user")


class RefreshToken(Base):
    """JWT refresh token tracking for revocation and rotation."""

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    replaced_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="refresh_tokens")


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(Base):
    """One row per user: marketplace role, contact and location fields."""

    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint("role IN ('tutor', 'student', 'admin')", name="ck_user_profiles_role"),
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="tutor")
    # Role held before an allow-list promotion to admin; restored on demotion.
    previous_role: Mapped[str | None] = mapped_column(String(16), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    locality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="profile")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class TuitionPost(Base):
    """A tuition requirement posted by a student."""

    __tablename__ = "tuition_posts"
    __table_args__ = (
        CheckConstraint("price_type IN ('hourly', 'monthly', 'onetime')", name="ck_tuition_posts_price_type"),
        Index("ix_tuition_posts_posted_on", "posted_on"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    course: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subjects: Mapped[list[str]] = mapped_column(JsonList, nullable=False, default=list)
    board: Mapped[str | None] = mapped_column(String(64), nullable=True)
    class_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    locality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    timing: Mapped[str] = mapped_column(String(16), nullable=False)
    gender_pref: Mapped[str] = mapped_column(String(16), nullable=False)
    tuition_type: Mapped[str] = mapped_column(String(32), nullable=False)
    price_type: Mapped[str] = mapped_column(String(16), nullable=False)
    asked_price: Mapped[float] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    posted_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Unlocks & applications
# ---------------------------------------------------------------------------


class Unlock(Base):
    """Paid access of a tutor to one post's contact details."""

    __tablename__ = "unlocks"
    __table_args__ = (UniqueConstraint("tutor_id", "post_id", name="uq_unlocks_tutor_post"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tutor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tuition_posts.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[float] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="paid")
    manual_payment_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("manual_payments.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Application(Base):
    """A tutor's proposal against a post."""

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tuition_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tutor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    quoted_price: Mapped[float] = mapped_column(Money, nullable=False)
    price_type: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class ManualPayment(Base):
    """Proof-of-payment claim awaiting admin review."""

    __tablename__ = "manual_payments"
    __table_args__ = (
        CheckConstraint("purpose IN ('post_view', 'post_create')", name="ck_manual_payments_purpose"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_manual_payments_status"),
        Index("ix_manual_payments_status", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    payer_user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purpose: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[float] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    target_post_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("tuition_posts.id", ondelete="SET NULL"), nullable=True
    )
    proof_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    reviewed_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    payer_profile: Mapped[Profile | None] = relationship(
        "Profile",
        primaryjoin="foreign(ManualPayment.payer_user_id) == Profile.user_id",
        viewonly=True,
        lazy="raise",
    )


class WalletTransaction(Base):
    """UPI top-up claim carrying a user-entered UTR, awaiting admin verification."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'verified', 'rejected')", name="ck_wallet_transactions_status"),
        Index("ix_wallet_transactions_status", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    amount: Mapped[float] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False, default="credit")
    payment_method: Mapped[str] = mapped_column(String(16), nullable=False, default="upi")
    utr_number: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    verified_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
