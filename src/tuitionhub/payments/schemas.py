"""Request/response schemas for manual payments and the gateway stub."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

PaymentPurpose = Literal["post_view", "post_create"]


class ManualPaymentCreateRequest(BaseModel):
    """Start a manual (QR) payment. ``post_view`` needs the post being unlocked."""

    purpose: PaymentPurpose
    target_post_id: int | None = Field(None, gt=0)

    @model_validator(mode="after")
    def target_for_post_view(self) -> ManualPaymentCreateRequest:
        if self.purpose == "post_view" and self.target_post_id is None:
            msg = "target_post_id is required for post_view payments"
            raise ValueError(msg)
        return self


class ManualPaymentResponse(BaseModel):
    id: int
    payer_user_id: int
    purpose: str
    amount: float
    currency: str
    target_post_id: int | None = None
    proof_url: str | None = None
    status: str
    reviewed_by: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GatewayOrderRequest(BaseModel):
    """Order creation for the card/UPI gateway (not integrated)."""

    purpose: PaymentPurpose
    target_post_id: int | None = Field(None, gt=0)


class GatewayOrderResponse(BaseModel):
    order_id: str
    amount: float
    currency: str


class GatewayVerifyRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class GatewayVerifyResponse(BaseModel):
    verified: bool
