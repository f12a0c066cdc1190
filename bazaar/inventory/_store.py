"""
Inventory store — purchased holdings per user.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from bazaar._store import StoreError
from bazaar._types import ProductId, UserId, new_id, utcnow
from bazaar.db import InventoryTable, ProductTable, dialect_insert


@dataclass(frozen=True, slots=True)
class Holding:
    user_id: UserId
    product_id: ProductId
    product_name: str
    category: str
    quantity: int
    acquired_at: datetime
    updated_at: datetime


class InventoryStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_holding(
        self,
        session: AsyncSession,
        user_id: UserId,
        product_id: ProductId,
        quantity: int,
    ) -> Result[None, StoreError]:
        """Upsert inside the caller's transaction: existing holdings grow by quantity."""
        now = utcnow()
        try:
            insert = dialect_insert(session, InventoryTable)
            stmt = insert.values(
                id=new_id(),
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                acquired_at=now,
                updated_at=now,
            ).on_conflict_do_update(
                index_elements=["user_id", "product_id"],
                set_={
                    "quantity": InventoryTable.quantity + insert.excluded.quantity,
                    "updated_at": now,
                },
            )
            await session.execute(stmt)
        except Exception as e:
            return Error(StoreError(f"Failed to add holding: {e}", e))
        return Ok(None)

    async def list_by_user(self, user_id: UserId) -> Result[list[Holding], StoreError]:
        """Holdings joined with product details, most recently acquired first."""
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(
                        InventoryTable.user_id,
                        InventoryTable.product_id,
                        InventoryTable.quantity,
                        InventoryTable.acquired_at,
                        InventoryTable.updated_at,
                        ProductTable.name,
                        ProductTable.category,
                    )
                    .join(ProductTable, ProductTable.id == InventoryTable.product_id)
                    .where(InventoryTable.user_id == user_id)
                    .order_by(InventoryTable.acquired_at.desc())
                )
                rows = (await session.execute(stmt)).all()
        except Exception as e:
            return Error(StoreError(f"Failed to read inventory: {e}", e))

        return Ok(
            [
                Holding(
                    user_id=row.user_id,
                    product_id=row.product_id,
                    product_name=row.name,
                    category=row.category,
                    quantity=row.quantity,
                    acquired_at=row.acquired_at,
                    updated_at=row.updated_at,
                )
                for row in rows
            ]
        )

    async def clear(self, user_id: UserId) -> Result[int, StoreError]:
        """Administrative wipe of a user's holdings. Returns rows removed."""
        try:
            async with self._session_factory() as session, session.begin():
                stmt = delete(InventoryTable).where(InventoryTable.user_id == user_id)
                cursor = cast(CursorResult[Any], await session.execute(stmt))
        except Exception as e:
            return Error(StoreError(f"Failed to clear inventory: {e}", e))
        return Ok(cursor.rowcount)


__all__ = (
    "Holding",
    "InventoryStore",
)
