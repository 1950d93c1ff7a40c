"""Response/request schemas for the admin dashboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from tuitionhub.payments.schemas import ManualPaymentResponse
from tuitionhub.posts.schemas import UnlockResponse


class AdminStatsResponse(BaseModel):
    total_users: int
    total_posts: int
    pending_payments: int
    approved_payments: int
    rejected_payments: int
    total_revenue: float
    pending_wallet_transactions: int


class AdminPaymentResponse(ManualPaymentResponse):
    """A manual payment with the payer's profile fields joined in."""

    payer_name: str | None = None
    payer_phone: str | None = None


class PaymentReviewResponse(BaseModel):
    payment: ManualPaymentResponse
    unlock: UnlockResponse | None = None


class ReviewNotesRequest(BaseModel):
    notes: str | None = Field(None, max_length=500)


class AdminUserResponse(BaseModel):
    id: int
    email: str
    role: str | None = None
    full_name: str | None = None
    phone: str | None = None
    city: str | None = None
    is_banned: bool
    created_at: datetime
    last_login: datetime | None = None
