"""
Inventory — what users have bought.

    from bazaar import inventory

    holdings = await inventory.InventoryStore(session_factory).list_by_user(user_id)
"""

from bazaar.inventory._store import Holding, InventoryStore

__all__ = (
    "Holding",
    "InventoryStore",
)
