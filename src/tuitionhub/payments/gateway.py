"""Payment gateway client.

Settlement through the gateway is not wired up yet: orders get a locally
minted id and every signature verifies. Nothing is granted on verification.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount: float
    currency: str


def create_order(amount: float, currency: str) -> GatewayOrder:
    order = GatewayOrder(order_id=f"order_{int(time.time() * 1000)}", amount=amount, currency=currency)
    logger.info("gateway_order_created", order_id=order.order_id, amount=amount, currency=currency)
    return order


def verify_payment(order_id: str, payment_id: str, signature: str) -> bool:  # noqa: ARG001
    logger.info("gateway_payment_verified", order_id=order_id, payment_id=payment_id)
    return True
