"""
Admin review of manual payments and wallet top-ups, plus moderation listings.

Every review is a conditional status update guarded by ``status = 'pending'``,
so two admins acting on the same record resolve to one success and one
AlreadyReviewedError. Approving a ``post_view`` payment grants the Unlock in
the same transaction as the status change.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from tuitionhub.db.models import ManualPayment, Profile, TuitionPost, Unlock, User, WalletTransaction
from tuitionhub.payments.state import (
    MANUAL_PAYMENT_TRANSITIONS,
    WALLET_TRANSACTION_TRANSITIONS,
    InvalidTransitionError,
    validate_transition,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MANUAL_UNLOCK_PROVIDER = "manual_qr"


class ReviewTargetNotFoundError(LookupError):
    """Raised when the payment or transaction under review does not exist."""


class AlreadyReviewedError(InvalidTransitionError):
    """Raised when the record left ``pending`` before this review landed."""


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


async def get_stats(db: AsyncSession) -> dict[str, Any]:
    """Headline counts for the admin overview tab."""
    total_users = await db.scalar(select(func.count()).select_from(User))
    total_posts = await db.scalar(select(func.count()).select_from(TuitionPost))

    payment_rows = await db.execute(
        select(ManualPayment.status, func.count(), func.coalesce(func.sum(ManualPayment.amount), 0)).group_by(
            ManualPayment.status
        )
    )
    by_status = {status: (count, float(total or 0)) for status, count, total in payment_rows.all()}

    pending_wallet = await db.scalar(
        select(func.count()).select_from(WalletTransaction).where(WalletTransaction.status == "pending")
    )
    return {
        "total_users": total_users or 0,
        "total_posts": total_posts or 0,
        "pending_payments": by_status.get("pending", (0, 0.0))[0],
        "approved_payments": by_status.get("approved", (0, 0.0))[0],
        "rejected_payments": by_status.get("rejected", (0, 0.0))[0],
        "total_revenue": by_status.get("approved", (0, 0.0))[1],
        "pending_wallet_transactions": pending_wallet or 0,
    }


# ---------------------------------------------------------------------------
# Manual payments
# ---------------------------------------------------------------------------


async def list_payments(db: AsyncSession, status: str | None = None) -> list[ManualPayment]:
    """Payments newest first, each with the payer's profile loaded."""
    query = select(ManualPayment).options(selectinload(ManualPayment.payer_profile))
    if status:
        query = query.where(ManualPayment.status == status)
    result = await db.execute(query.order_by(ManualPayment.created_at.desc(), ManualPayment.id.desc()))
    return list(result.scalars().all())


async def _load_payment(db: AsyncSession, payment_id: int) -> ManualPayment:
    payment = await db.get(ManualPayment, payment_id)
    if payment is None:
        msg = f"Payment {payment_id} not found"
        raise ReviewTargetNotFoundError(msg)
    return payment


async def _unlock_exists(db: AsyncSession, tutor_id: int, post_id: int) -> bool:
    found = await db.scalar(select(Unlock.id).where(Unlock.tutor_id == tutor_id, Unlock.post_id == post_id))
    return found is not None


async def _transition_payment(
    db: AsyncSession,
    payment_id: int,
    admin_id: int,
    target: str,
) -> ManualPayment:
    payment = await _load_payment(db, payment_id)
    validate_transition(MANUAL_PAYMENT_TRANSITIONS, payment.status, target)

    result = await db.execute(
        update(ManualPayment)
        .where(ManualPayment.id == payment_id, ManualPayment.status == "pending")
        .values(status=target, reviewed_by=admin_id, updated_at=datetime.now(timezone.utc))
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await db.rollback()
        msg = f"Payment {payment_id} has already been reviewed"
        raise AlreadyReviewedError(msg)
    return payment


async def approve_payment(db: AsyncSession, payment_id: int, admin_id: int) -> tuple[ManualPayment, Unlock | None]:
    """
    Approve a pending payment and, for ``post_view``, grant the Unlock.

    Returns:
        Tuple of (payment, unlock). ``unlock`` is None when nothing was
        granted: a ``post_create`` payment, no target post, or an Unlock for
        the pair already existed.

    Raises:
        ReviewTargetNotFoundError: Unknown payment id.
        InvalidTransitionError: Payment is no longer pending.
    """
    payment = await _transition_payment(db, payment_id, admin_id, "approved")

    unlock: Unlock | None = None
    if payment.purpose == "post_view" and payment.target_post_id is not None:
        if not await _unlock_exists(db, payment.payer_user_id, payment.target_post_id):
            unlock = Unlock(
                tutor_id=payment.payer_user_id,
                post_id=payment.target_post_id,
                amount=payment.amount,
                currency=payment.currency,
                provider=MANUAL_UNLOCK_PROVIDER,
                status="paid",
                manual_payment_id=payment.id,
                created_at=datetime.now(timezone.utc),
            )
            db.add(unlock)

    try:
        await db.commit()
    except IntegrityError as e:
        # Usually a concurrent approval that inserted the Unlock for the pair first.
        # Both the status change and the insert are undone; the payment stays pending.
        await db.rollback()
        logger.warning("manual_payment_approval_conflict", payment_id=payment_id, error=str(e.orig))
        msg = f"Payment {payment_id} could not be approved due to a conflicting change; reload and retry"
        raise AlreadyReviewedError(msg) from e

    logger.info(
        "manual_payment_approved",
        payment_id=payment.id,
        admin_id=admin_id,
        purpose=payment.purpose,
        target_post_id=payment.target_post_id,
    )
    if unlock is not None:
        logger.info("unlock_granted", unlock_id=unlock.id, tutor_id=unlock.tutor_id, post_id=unlock.post_id)
    return payment, unlock


async def reject_payment(db: AsyncSession, payment_id: int, admin_id: int) -> ManualPayment:
    """Reject a pending payment. Never creates an Unlock."""
    payment = await _transition_payment(db, payment_id, admin_id, "rejected")
    await db.commit()
    logger.info("manual_payment_rejected", payment_id=payment.id, admin_id=admin_id)
    return payment


# ---------------------------------------------------------------------------
# Wallet transactions
# ---------------------------------------------------------------------------


async def list_wallet_transactions(db: AsyncSession, status: str | None = None) -> list[WalletTransaction]:
    query = select(WalletTransaction)
    if status:
        query = query.where(WalletTransaction.status == status)
    result = await db.execute(query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc()))
    return list(result.scalars().all())


async def review_wallet_transaction(
    db: AsyncSession,
    transaction_id: int,
    admin_id: int,
    target: str,
    notes: str | None = None,
) -> WalletTransaction:
    """
    Move a pending top-up to ``verified`` or ``rejected``.

    Only this row changes; no balance exists to credit.
    """
    txn = await db.get(WalletTransaction, transaction_id)
    if txn is None:
        msg = f"Wallet transaction {transaction_id} not found"
        raise ReviewTargetNotFoundError(msg)
    validate_transition(WALLET_TRANSACTION_TRANSITIONS, txn.status, target)

    result = await db.execute(
        update(WalletTransaction)
        .where(WalletTransaction.id == transaction_id, WalletTransaction.status == "pending")
        .values(
            status=target,
            verified_by=admin_id,
            verified_at=datetime.now(timezone.utc),
            admin_notes=notes,
        )
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await db.rollback()
        msg = f"Wallet transaction {transaction_id} has already been reviewed"
        raise AlreadyReviewedError(msg)
    await db.commit()

    logger.info(
        "wallet_transaction_verified" if target == "verified" else "wallet_transaction_rejected",
        wallet_transaction_id=txn.id,
        admin_id=admin_id,
        amount=txn.amount,
    )
    return txn


# ---------------------------------------------------------------------------
# Moderation listings
# ---------------------------------------------------------------------------


async def list_users(db: AsyncSession, limit: int = 100) -> list[tuple[User, Profile | None]]:
    result = await db.execute(
        select(User, Profile)
        .outerjoin(Profile, Profile.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
    )
    return [(user, profile) for user, profile in result.all()]


async def list_recent_posts(db: AsyncSession, limit: int = 50) -> list[TuitionPost]:
    result = await db.execute(
        select(TuitionPost).order_by(TuitionPost.created_at.desc(), TuitionPost.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
