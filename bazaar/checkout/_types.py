"""
Checkout types — result, errors, collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bazaar._types import Coins, ProductId
from bazaar.cart import CartStore
from bazaar.inventory import InventoryStore
from bazaar.orders import Order, OrderStore


# ═══════════════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    """
    Successful checkout.

    Note: duplicate is True when a recent identical order was returned
    instead of placing a new one.
    """

    order: Order
    duplicate: bool


# ═══════════════════════════════════════════════════════════════════════════════
# Errors — closed set, never inferred from message text
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutErrorKind(Enum):
    EMPTY_CART = auto()
    INSUFFICIENT_FUNDS = auto()
    INSUFFICIENT_STOCK = auto()
    PRODUCT_UNAVAILABLE = auto()
    INTERNAL = auto()  # Details only in logs


@dataclass(frozen=True, slots=True)
class CheckoutError:
    """
    Checkout failure.

    Note: message is safe to show to the user verbatim.
    product_id/available/requested are set for INSUFFICIENT_STOCK
    (product_id also for PRODUCT_UNAVAILABLE).
    """

    kind: CheckoutErrorKind
    message: str
    product_id: ProductId | None = None
    available: int | None = None
    requested: int | None = None

    @property
    def is_internal(self) -> bool:
        return self.kind is CheckoutErrorKind.INTERNAL


class CheckoutErrors:
    """Factory namespace for CheckoutError."""

    @staticmethod
    def empty_cart() -> CheckoutError:
        return CheckoutError(CheckoutErrorKind.EMPTY_CART, "cart is empty")

    @staticmethod
    def insufficient_funds(have: Coins, need: Coins) -> CheckoutError:
        return CheckoutError(
            CheckoutErrorKind.INSUFFICIENT_FUNDS,
            f"insufficient coins: have {have}, need {need}",
        )

    @staticmethod
    def insufficient_stock(
        product_id: ProductId, name: str, available: int, requested: int
    ) -> CheckoutError:
        return CheckoutError(
            CheckoutErrorKind.INSUFFICIENT_STOCK,
            f"insufficient stock for {name}: available {available}, requested {requested}",
            product_id=product_id,
            available=available,
            requested=requested,
        )

    @staticmethod
    def product_unavailable(product_id: ProductId, name: str | None = None) -> CheckoutError:
        return CheckoutError(
            CheckoutErrorKind.PRODUCT_UNAVAILABLE,
            f"product {name or product_id} is no longer available",
            product_id=product_id,
        )

    @staticmethod
    def internal() -> CheckoutError:
        return CheckoutError(CheckoutErrorKind.INTERNAL, "failed to create order")


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Stores:
    """Everything a checkout reads from or writes to."""

    session_factory: async_sessionmaker[AsyncSession]
    cart: CartStore
    orders: OrderStore
    inventory: InventoryStore

    @classmethod
    def from_session_factory(cls, session_factory: async_sessionmaker[AsyncSession]) -> Stores:
        return cls(
            session_factory=session_factory,
            cart=CartStore(session_factory),
            orders=OrderStore(session_factory),
            inventory=InventoryStore(session_factory),
        )


__all__ = (
    "CheckoutResult",
    "CheckoutErrorKind",
    "CheckoutError",
    "CheckoutErrors",
    "Stores",
)
