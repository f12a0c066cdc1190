"""
Core types for bazaar — identifiers and money shared by every package.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

# ═══════════════════════════════════════════════════════════════════════════════
# Identity & Money
# ═══════════════════════════════════════════════════════════════════════════════

type UserId = str
type ProductId = str
type OrderId = str
type CartItemId = str

type Coins = int
"""Virtual currency. Always a whole, non-negative amount when stored."""


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage format of every DateTime column."""
    return datetime.now(UTC).replace(tzinfo=None)


__all__ = (
    "UserId",
    "ProductId",
    "OrderId",
    "CartItemId",
    "Coins",
    "new_id",
    "utcnow",
)
