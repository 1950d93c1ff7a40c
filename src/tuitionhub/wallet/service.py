"""Wallet top-up claims."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from tuitionhub.config import get_settings
from tuitionhub.db.models import WalletTransaction

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tuitionhub.auth.dependencies import SessionContext

logger = structlog.get_logger()

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_transaction_id() -> str:
    """``TXN`` + epoch milliseconds + 6 random characters."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"TXN{int(time.time() * 1000)}{suffix}"


async def submit_topup(db: AsyncSession, ctx: SessionContext, amount: float, utr_number: str) -> WalletTransaction:
    """
    Record a pending UPI top-up claim.

    The UTR is not checked against any payment rail; an admin verifies it by hand.
    """
    txn = WalletTransaction(
        user_id=ctx.user_id,
        user_email=ctx.user.email,
        user_name=ctx.profile.full_name,
        user_phone=ctx.profile.phone,
        amount=amount,
        currency=get_settings().currency,
        transaction_type="credit",
        payment_method="upi",
        utr_number=utr_number,
        transaction_id=generate_transaction_id(),
        status="pending",
        created_at=datetime.now(timezone.utc),
    )
    db.add(txn)
    await db.flush()
    logger.info(
        "wallet_topup_submitted",
        wallet_transaction_id=txn.id,
        user_id=ctx.user_id,
        amount=amount,
        transaction_id=txn.transaction_id,
    )
    return txn


async def list_my_transactions(db: AsyncSession, user_id: int) -> list[WalletTransaction]:
    result = await db.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
    )
    return list(result.scalars().all())
