"""
Order types — immutable orders and their lines.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from bazaar._types import Coins, OrderId, ProductId, UserId


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class OrderLine:
    """
    Denormalized copy of the product at purchase time.

    Note: product_name and unit_price never follow later catalogue edits.
    """

    id: str
    order_id: OrderId
    product_id: ProductId
    product_name: str
    quantity: int
    unit_price: Coins
    subtotal: Coins
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    user_id: UserId
    order_number: str
    total_amount: Coins
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    lines: tuple[OrderLine, ...] = ()

    def with_lines(self, lines: tuple[OrderLine, ...]) -> Order:
        return Order(
            id=self.id,
            user_id=self.user_id,
            order_number=self.order_number,
            total_amount=self.total_amount,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
            lines=lines,
        )


def generate_order_number(now: datetime) -> str:
    """``ORD-<yymmdd>-<6 hex>``, 17 characters."""
    return f"ORD-{now:%y%m%d}-{uuid.uuid4().hex[:6].upper()}"


__all__ = (
    "OrderStatus",
    "OrderLine",
    "Order",
    "generate_order_number",
)
