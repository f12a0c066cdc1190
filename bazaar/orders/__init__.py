"""
Orders — immutable purchase records.

    from bazaar import orders

    store = orders.OrderStore(session_factory)
    recent = await store.find_recent_by_user(user_id, timedelta(seconds=15))
"""

from bazaar.orders._types import (
    OrderStatus,
    OrderLine,
    Order,
    generate_order_number,
)
from bazaar.orders._store import OrderStore

__all__ = (
    "OrderStatus",
    "OrderLine",
    "Order",
    "generate_order_number",
    "OrderStore",
)
