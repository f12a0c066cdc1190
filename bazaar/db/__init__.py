"""
Database — SQLAlchemy tables and async engine.

    from bazaar import db

    session_factory, engine = await db.create_database("sqlite+aiosqlite:///bazaar.db")

    async with session_factory() as session, session.begin():
        ...
"""

from bazaar.db._tables import (
    Base,
    UserTable,
    ProductTable,
    CartItemTable,
    OrderTable,
    OrderItemTable,
    InventoryTable,
)
from bazaar.db._engine import (
    create_engine,
    create_database,
    dialect_insert,
)

__all__ = (
    "Base",
    "UserTable",
    "ProductTable",
    "CartItemTable",
    "OrderTable",
    "OrderItemTable",
    "InventoryTable",
    "create_engine",
    "create_database",
    "dialect_insert",
)
