"""Wallet router: /api/v1/wallet/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.dependencies import SessionContext, get_session_context
from tuitionhub.config import get_settings
from tuitionhub.database import get_session
from tuitionhub.wallet.schemas import TopUpRequest, UpiIntentResponse, WalletTransactionResponse
from tuitionhub.wallet.service import list_my_transactions, submit_topup
from tuitionhub.wallet.upi import build_upi_link, qr_data_uri

router = APIRouter(prefix="/api/v1/wallet", tags=["Wallet"])


@router.get("/upi-intent", response_model=UpiIntentResponse)
async def upi_intent(
    amount: float = Query(..., gt=0, le=1_000_000),
    ctx: SessionContext = Depends(get_session_context),  # noqa: ARG001
) -> UpiIntentResponse:
    """UPI deep link and QR code for paying ``amount`` to the platform."""
    settings = get_settings()
    link = build_upi_link(settings.upi_payee_vpa, settings.upi_payee_name, amount, settings.currency)
    return UpiIntentResponse(
        upi_link=link,
        qr_code=qr_data_uri(link),
        amount=amount,
        currency=settings.currency,
        payee_vpa=settings.upi_payee_vpa,
        payee_name=settings.upi_payee_name,
    )


@router.post("/topups", response_model=WalletTransactionResponse, status_code=201)
async def create_topup(
    body: TopUpRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> WalletTransactionResponse:
    txn = await submit_topup(db, ctx, body.amount, body.utr_number)
    await db.commit()
    return WalletTransactionResponse.model_validate(txn)


@router.get("/transactions", response_model=list[WalletTransactionResponse])
async def my_transactions(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> list[WalletTransactionResponse]:
    return [WalletTransactionResponse.model_validate(t) for t in await list_my_transactions(db, ctx.user_id)]
