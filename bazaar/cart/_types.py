"""
Cart types — lines, summary, errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto

from bazaar._types import CartItemId, Coins, ProductId, UserId


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    A cart line with the product price resolved at read time.

    Note: unit_price is informational. Checkout re-reads the price under lock.
    """

    id: CartItemId
    product_id: ProductId
    product_name: str
    unit_price: Coins
    quantity: int

    @property
    def subtotal(self) -> Coins:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class CartSummary:
    user_id: UserId
    lines: tuple[CartLine, ...]
    total_items: int
    total_price: Coins

    @classmethod
    def of(cls, user_id: UserId, lines: Sequence[CartLine]) -> CartSummary:
        return cls(
            user_id=user_id,
            lines=tuple(lines),
            total_items=sum(line.quantity for line in lines),
            total_price=sum(line.subtotal for line in lines),
        )

    @property
    def is_empty(self) -> bool:
        return not self.lines


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class CartErrorKind(Enum):
    INVALID_QUANTITY = auto()
    PRODUCT_NOT_FOUND = auto()
    INSUFFICIENT_STOCK = auto()
    ITEM_NOT_FOUND = auto()
    STORE = auto()


@dataclass(frozen=True, slots=True)
class CartError:
    kind: CartErrorKind
    message: str
    cause: Exception | None = None


class CartErrors:
    """Factory namespace for CartError."""

    @staticmethod
    def invalid_quantity(quantity: int) -> CartError:
        return CartError(CartErrorKind.INVALID_QUANTITY, f"quantity must be positive, got {quantity}")

    @staticmethod
    def product_not_found(product_id: ProductId) -> CartError:
        return CartError(CartErrorKind.PRODUCT_NOT_FOUND, f"product not found: {product_id}")

    @staticmethod
    def insufficient_stock(name: str, available: int, requested: int) -> CartError:
        return CartError(
            CartErrorKind.INSUFFICIENT_STOCK,
            f"insufficient stock for {name}: available {available}, requested {requested}",
        )

    @staticmethod
    def item_not_found() -> CartError:
        return CartError(CartErrorKind.ITEM_NOT_FOUND, "cart item not found")

    @staticmethod
    def store(message: str, cause: Exception) -> CartError:
        return CartError(CartErrorKind.STORE, message, cause)


__all__ = (
    "CartLine",
    "CartSummary",
    "CartErrorKind",
    "CartError",
    "CartErrors",
)
