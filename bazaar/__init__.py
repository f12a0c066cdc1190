"""
bazaar — coin marketplace backend.

    from bazaar import checkout as CO  # Cart → order, atomically
    from bazaar import ledger          # Stock & balance
    from bazaar import cart            # Pending selections
    from bazaar import orders          # Immutable purchases
    from bazaar import inventory       # Purchased holdings
    from bazaar import db              # Tables & engine

HTTP surface: ``bazaar.http.create_app``.
"""

from bazaar import graph
from bazaar import db
from bazaar import ledger
from bazaar import cart
from bazaar import orders
from bazaar import inventory
from bazaar import checkout
from bazaar._store import StoreError
from bazaar._types import (
    UserId,
    ProductId,
    OrderId,
    CartItemId,
    Coins,
)

__version__ = "0.1.0"

__all__ = (
    "graph",
    "db",
    "ledger",
    "cart",
    "orders",
    "inventory",
    "checkout",
    "StoreError",
    "UserId",
    "ProductId",
    "OrderId",
    "CartItemId",
    "Coins",
)
