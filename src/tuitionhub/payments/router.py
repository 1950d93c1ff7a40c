"""Payments router: /api/v1/payments/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.dependencies import SessionContext, get_session_context
from tuitionhub.config import get_settings
from tuitionhub.database import get_session
from tuitionhub.payments import gateway
from tuitionhub.payments.schemas import (
    GatewayOrderRequest,
    GatewayOrderResponse,
    GatewayVerifyRequest,
    GatewayVerifyResponse,
    ManualPaymentCreateRequest,
    ManualPaymentResponse,
)
from tuitionhub.payments.service import (
    PaymentNotFoundError,
    ProofTooLargeError,
    ProofTypeError,
    TargetPostNotFoundError,
    attach_proof,
    get_own_payment,
    list_my_payments,
    price_for,
    submit_manual_payment,
)
from tuitionhub.payments.storage import BaseProofStorage, ProofStorageError, get_proof_storage

router = APIRouter(prefix="/api/v1/payments", tags=["Payments"])


@router.post("/manual", response_model=ManualPaymentResponse, status_code=201)
async def create_manual_payment(
    body: ManualPaymentCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> ManualPaymentResponse:
    """Submit a manual QR payment claim for admin review."""
    try:
        payment = await submit_manual_payment(db, ctx.user_id, body.purpose, body.target_post_id)
    except TargetPostNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return ManualPaymentResponse.model_validate(payment)


@router.get("/manual", response_model=list[ManualPaymentResponse])
async def my_manual_payments(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> list[ManualPaymentResponse]:
    payments = await list_my_payments(db, ctx.user_id)
    return [ManualPaymentResponse.model_validate(p) for p in payments]


@router.post("/manual/{payment_id}/proof", response_model=ManualPaymentResponse)
async def upload_payment_proof(
    payment_id: int,
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
    storage: BaseProofStorage = Depends(get_proof_storage),
) -> ManualPaymentResponse:
    """Attach a screenshot of the payment (image, under the size limit)."""
    try:
        payment = await get_own_payment(db, payment_id, ctx.user_id)
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    # Read at most one byte past the limit; anything that long is rejected anyway.
    data = await file.read(get_settings().proof_max_bytes + 1)
    try:
        payment = await attach_proof(
            db,
            storage,
            payment,
            filename=file.filename,
            content_type=file.content_type,
            data=data,
        )
    except ProofTypeError as e:
        raise HTTPException(status_code=415, detail=str(e)) from e
    except ProofTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except ProofStorageError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    await db.commit()
    return ManualPaymentResponse.model_validate(payment)


# ---------------------------------------------------------------------------
# Gateway (not integrated)
# ---------------------------------------------------------------------------


@router.post("/orders", response_model=GatewayOrderResponse)
async def create_gateway_order(
    body: GatewayOrderRequest,
    ctx: SessionContext = Depends(get_session_context),  # noqa: ARG001
) -> GatewayOrderResponse:
    order = gateway.create_order(price_for(body.purpose), get_settings().currency)
    return GatewayOrderResponse(order_id=order.order_id, amount=order.amount, currency=order.currency)


@router.post("/orders/verify", response_model=GatewayVerifyResponse)
async def verify_gateway_payment(
    body: GatewayVerifyRequest,
    ctx: SessionContext = Depends(get_session_context),  # noqa: ARG001
) -> GatewayVerifyResponse:
    """Verify a gateway payment signature. Grants no access."""
    return GatewayVerifyResponse(verified=gateway.verify_payment(body.order_id, body.payment_id, body.signature))
