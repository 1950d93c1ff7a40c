"""Admin router: /api/v1/admin/* endpoints. Every route requires the admin role."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.admin.schemas import (
    AdminPaymentResponse,
    AdminStatsResponse,
    AdminUserResponse,
    PaymentReviewResponse,
    ReviewNotesRequest,
)
from tuitionhub.admin.service import (
    ReviewTargetNotFoundError,
    approve_payment,
    get_stats,
    list_payments,
    list_recent_posts,
    list_users,
    list_wallet_transactions,
    reject_payment,
    review_wallet_transaction,
)
from tuitionhub.auth.dependencies import SessionContext, require_admin
from tuitionhub.database import get_session
from tuitionhub.db.models import ManualPayment
from tuitionhub.payments.schemas import ManualPaymentResponse
from tuitionhub.payments.state import InvalidTransitionError
from tuitionhub.posts.schemas import PostResponse, UnlockResponse
from tuitionhub.wallet.schemas import WalletTransactionResponse

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


def _admin_payment(payment: ManualPayment) -> AdminPaymentResponse:
    base = ManualPaymentResponse.model_validate(payment).model_dump()
    profile = payment.payer_profile
    return AdminPaymentResponse(
        **base,
        payer_name=profile.full_name if profile else None,
        payer_phone=profile.phone if profile else None,
    )


@router.get("/stats", response_model=AdminStatsResponse)
async def stats(
    _admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminStatsResponse:
    return AdminStatsResponse(**await get_stats(db))


# ---------------------------------------------------------------------------
# Manual payments
# ---------------------------------------------------------------------------


@router.get("/payments", response_model=list[AdminPaymentResponse])
async def payments(
    status: Literal["pending", "approved", "rejected"] | None = None,
    _admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AdminPaymentResponse]:
    return [_admin_payment(p) for p in await list_payments(db, status)]


@router.post("/payments/{payment_id}/approve", response_model=PaymentReviewResponse)
async def approve(
    payment_id: int,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PaymentReviewResponse:
    """Approve a pending payment; a post_view approval grants the unlock atomically."""
    try:
        payment, unlock = await approve_payment(db, payment_id, admin.user_id)
    except ReviewTargetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return PaymentReviewResponse(
        payment=ManualPaymentResponse.model_validate(payment),
        unlock=UnlockResponse.model_validate(unlock) if unlock is not None else None,
    )


@router.post("/payments/{payment_id}/reject", response_model=PaymentReviewResponse)
async def reject(
    payment_id: int,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PaymentReviewResponse:
    try:
        payment = await reject_payment(db, payment_id, admin.user_id)
    except ReviewTargetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return PaymentReviewResponse(payment=ManualPaymentResponse.model_validate(payment))


# ---------------------------------------------------------------------------
# Wallet transactions
# ---------------------------------------------------------------------------


@router.get("/wallet-transactions", response_model=list[WalletTransactionResponse])
async def wallet_transactions(
    status: Literal["pending", "verified", "rejected"] | None = None,
    _admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[WalletTransactionResponse]:
    return [WalletTransactionResponse.model_validate(t) for t in await list_wallet_transactions(db, status)]


async def _review_wallet(
    db: AsyncSession,
    transaction_id: int,
    admin_id: int,
    target: str,
    notes: str | None,
) -> WalletTransactionResponse:
    try:
        txn = await review_wallet_transaction(db, transaction_id, admin_id, target, notes)
    except ReviewTargetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return WalletTransactionResponse.model_validate(txn)


@router.post("/wallet-transactions/{transaction_id}/verify", response_model=WalletTransactionResponse)
async def verify_wallet_transaction(
    transaction_id: int,
    body: ReviewNotesRequest | None = Body(None),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> WalletTransactionResponse:
    return await _review_wallet(db, transaction_id, admin.user_id, "verified", body.notes if body else None)


@router.post("/wallet-transactions/{transaction_id}/reject", response_model=WalletTransactionResponse)
async def reject_wallet_transaction(
    transaction_id: int,
    body: ReviewNotesRequest | None = Body(None),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> WalletTransactionResponse:
    return await _review_wallet(db, transaction_id, admin.user_id, "rejected", body.notes if body else None)


# ---------------------------------------------------------------------------
# Moderation listings
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[AdminUserResponse])
async def users(
    _admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AdminUserResponse]:
    return [
        AdminUserResponse(
            id=user.id,
            email=user.email,
            role=profile.role if profile else None,
            full_name=profile.full_name if profile else None,
            phone=profile.phone if profile else None,
            city=profile.city if profile else None,
            is_banned=user.is_banned,
            created_at=user.created_at,
            last_login=user.last_login,
        )
        for user, profile in await list_users(db)
    ]


@router.get("/posts", response_model=list[PostResponse])
async def posts(
    _admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[PostResponse]:
    return [PostResponse.model_validate(p) for p in await list_recent_posts(db)]
