"""
Wire models — pydantic request/response bodies.

Response models are built from domain objects with ``from_domain``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from bazaar.cart import CartLine, CartSummary
from bazaar.inventory import Holding
from bazaar.orders import Order, OrderLine


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderLineOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    price_per_unit: int
    subtotal: int

    @classmethod
    def from_domain(cls, line: OrderLine) -> OrderLineOut:
        return cls(
            id=line.id,
            product_id=line.product_id,
            product_name=line.product_name,
            quantity=line.quantity,
            price_per_unit=line.unit_price,
            subtotal=line.subtotal,
        )


class OrderOut(BaseModel):
    id: str
    user_id: str
    order_number: str
    total_amount: int
    status: str
    created_at: datetime
    items: list[OrderLineOut]

    @classmethod
    def from_domain(cls, order: Order) -> OrderOut:
        return cls(
            id=order.id,
            user_id=order.user_id,
            order_number=order.order_number,
            total_amount=order.total_amount,
            status=order.status.value,
            created_at=order.created_at,
            items=[OrderLineOut.from_domain(line) for line in order.lines],
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class AddToCartIn(BaseModel):
    product_id: str
    quantity: int


class UpdateCartItemIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    price: int
    quantity: int
    subtotal: int

    @classmethod
    def from_domain(cls, line: CartLine) -> CartLineOut:
        return cls(
            id=line.id,
            product_id=line.product_id,
            product_name=line.product_name,
            price=line.unit_price,
            quantity=line.quantity,
            subtotal=line.subtotal,
        )


class CartOut(BaseModel):
    items: list[CartLineOut]
    total_items: int
    total_price: int

    @classmethod
    def from_domain(cls, cart: CartSummary) -> CartOut:
        return cls(
            items=[CartLineOut.from_domain(line) for line in cart.lines],
            total_items=cart.total_items,
            total_price=cart.total_price,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Inventory & Admin
# ═══════════════════════════════════════════════════════════════════════════════


class HoldingOut(BaseModel):
    product_id: str
    product_name: str
    category: str
    quantity: int
    acquired_at: datetime

    @classmethod
    def from_domain(cls, holding: Holding) -> HoldingOut:
        return cls(
            product_id=holding.product_id,
            product_name=holding.product_name,
            category=holding.category,
            quantity=holding.quantity,
            acquired_at=holding.acquired_at,
        )


class AdjustCoinsIn(BaseModel):
    amount: int


class BalanceOut(BaseModel):
    message: str = "coins adjusted successfully"
    new_balance: int


class ClearedOut(BaseModel):
    removed: int


__all__ = (
    "OrderLineOut",
    "OrderOut",
    "AddToCartIn",
    "UpdateCartItemIn",
    "CartLineOut",
    "CartOut",
    "HoldingOut",
    "AdjustCoinsIn",
    "BalanceOut",
    "ClearedOut",
)
