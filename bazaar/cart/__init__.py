"""
Cart — the user's pending selections.

    from bazaar import cart

    carts = cart.CartStore(session_factory)
    await carts.add(user_id, product_id, quantity=2)
    summary = (await carts.snapshot(user_id)).unwrap()
"""

from bazaar.cart._types import (
    CartLine,
    CartSummary,
    CartErrorKind,
    CartError,
    CartErrors,
)
from bazaar.cart._store import CartStore

__all__ = (
    "CartLine",
    "CartSummary",
    "CartErrorKind",
    "CartError",
    "CartErrors",
    "CartStore",
)
