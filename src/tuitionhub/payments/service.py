"""Manual payment submission, proof upload and contact access state."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from tuitionhub.config import get_settings
from tuitionhub.db.models import ManualPayment, TuitionPost, Unlock
from tuitionhub.payments.state import AccessState, resolve_access_state
from tuitionhub.payments.storage import proof_object_key

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tuitionhub.payments.storage import BaseProofStorage

logger = structlog.get_logger()


class PaymentNotFoundError(LookupError):
    """Raised when a manual payment does not exist or is not the caller's."""


class TargetPostNotFoundError(LookupError):
    """Raised when a post_view payment names a post that does not exist."""


class InvalidProofError(ValueError):
    """Base class for proof files rejected before upload."""


class ProofTypeError(InvalidProofError):
    """Declared content type is not an image."""


class ProofTooLargeError(InvalidProofError):
    """File is at or above the configured size limit."""


def price_for(purpose: str) -> float:
    settings = get_settings()
    return settings.post_view_price if purpose == "post_view" else settings.post_create_price


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


async def submit_manual_payment(
    db: AsyncSession,
    payer_user_id: int,
    purpose: str,
    target_post_id: int | None = None,
) -> ManualPayment:
    """
    Record a manual payment claim in ``pending`` state.

    Amount and currency come from configuration, never from the caller.
    Repeated submissions for the same post are accepted.

    Raises:
        TargetPostNotFoundError: If ``target_post_id`` does not exist.
    """
    if target_post_id is not None:
        exists = await db.scalar(select(TuitionPost.id).where(TuitionPost.id == target_post_id))
        if exists is None:
            msg = f"Post {target_post_id} not found"
            raise TargetPostNotFoundError(msg)

    settings = get_settings()
    now = datetime.now(timezone.utc)
    payment = ManualPayment(
        payer_user_id=payer_user_id,
        purpose=purpose,
        amount=price_for(purpose),
        currency=settings.currency,
        target_post_id=target_post_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(payment)
    await db.flush()
    logger.info(
        "manual_payment_submitted",
        payment_id=payment.id,
        payer_user_id=payer_user_id,
        purpose=purpose,
        target_post_id=target_post_id,
        amount=payment.amount,
    )
    return payment


async def list_my_payments(db: AsyncSession, payer_user_id: int) -> list[ManualPayment]:
    result = await db.execute(
        select(ManualPayment)
        .where(ManualPayment.payer_user_id == payer_user_id)
        .order_by(ManualPayment.created_at.desc(), ManualPayment.id.desc())
    )
    return list(result.scalars().all())


async def get_own_payment(db: AsyncSession, payment_id: int, payer_user_id: int) -> ManualPayment:
    payment = await db.get(ManualPayment, payment_id)
    if payment is None or payment.payer_user_id != payer_user_id:
        msg = f"Payment {payment_id} not found"
        raise PaymentNotFoundError(msg)
    return payment


# ---------------------------------------------------------------------------
# Proof upload
# ---------------------------------------------------------------------------


def validate_proof_file(content_type: str | None, size: int) -> None:
    """
    Check a proof file's declared type and size.

    Raises:
        ProofTypeError: If the content type does not start with ``image/``.
        ProofTooLargeError: If ``size`` is at or above ``proof_max_bytes``.
    """
    if not content_type or not content_type.lower().startswith("image/"):
        msg = "Please upload an image file"
        raise ProofTypeError(msg)
    limit = get_settings().proof_max_bytes
    if size >= limit:
        msg = f"File size must be less than {limit // (1024 * 1024)}MB"
        raise ProofTooLargeError(msg)


async def attach_proof(
    db: AsyncSession,
    storage: BaseProofStorage,
    payment: ManualPayment,
    *,
    filename: str | None,
    content_type: str | None,
    data: bytes,
) -> ManualPayment:
    """
    Validate, upload and link a proof image to a payment.

    The row is only touched after the upload succeeded; a storage failure
    propagates and leaves ``proof_url`` as it was.
    """
    validate_proof_file(content_type, len(data))
    key = proof_object_key(payment.payer_user_id, payment.id, filename)
    await storage.upload(key, data, content_type or "application/octet-stream")

    payment.proof_url = storage.public_url(key)
    payment.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("manual_payment_proof_attached", payment_id=payment.id, key=key)
    return payment


# ---------------------------------------------------------------------------
# Access state
# ---------------------------------------------------------------------------


async def has_paid_unlock(db: AsyncSession, tutor_id: int, post_id: int) -> bool:
    found = await db.scalar(
        select(Unlock.id).where(
            Unlock.tutor_id == tutor_id,
            Unlock.post_id == post_id,
            Unlock.status == "paid",
        )
    )
    return found is not None


async def has_pending_view_payment(db: AsyncSession, tutor_id: int, post_id: int) -> bool:
    found = await db.scalar(
        select(ManualPayment.id)
        .where(
            ManualPayment.payer_user_id == tutor_id,
            ManualPayment.target_post_id == post_id,
            ManualPayment.purpose == "post_view",
            ManualPayment.status == "pending",
        )
        .limit(1)
    )
    return found is not None


async def get_access_state(db: AsyncSession, tutor_id: int, post_id: int) -> AccessState:
    """Access state of one (tutor, post) pair from stored unlocks and payments."""
    return resolve_access_state(
        await has_paid_unlock(db, tutor_id, post_id),
        await has_pending_view_payment(db, tutor_id, post_id),
    )
