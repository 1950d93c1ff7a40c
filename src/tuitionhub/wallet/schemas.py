"""Request/response schemas for wallet top-ups."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class UpiIntentResponse(BaseModel):
    upi_link: str
    qr_code: str
    amount: float
    currency: str
    payee_vpa: str
    payee_name: str


class TopUpRequest(BaseModel):
    """Claim of a completed UPI transfer, identified by the bank's UTR."""

    amount: float = Field(..., gt=0)
    utr_number: str = Field(..., max_length=64)

    @field_validator("utr_number")
    @classmethod
    def utr_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "UTR number is required"
            raise ValueError(msg)
        return v


class WalletTransactionResponse(BaseModel):
    id: int
    user_id: int
    user_email: str | None = None
    user_name: str | None = None
    user_phone: str | None = None
    amount: float
    currency: str
    transaction_type: str
    payment_method: str
    utr_number: str
    transaction_id: str
    status: str
    verified_by: int | None = None
    verified_at: datetime | None = None
    admin_notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
