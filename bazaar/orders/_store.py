"""
Order store — append-only writes, indexed reads.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from bazaar._store import StoreError
from bazaar._types import OrderId, UserId, utcnow
from bazaar.db import OrderTable, OrderItemTable
from bazaar.orders._types import Order, OrderLine, OrderStatus


def _to_order(row: OrderTable, lines: tuple[OrderLine, ...]) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        order_number=row.order_number,
        total_amount=row.total_amount,
        status=OrderStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        lines=lines,
    )


def _to_line(row: OrderItemTable) -> OrderLine:
    return OrderLine(
        id=row.id,
        order_id=row.order_id,
        product_id=row.product_id,
        product_name=row.product_name,
        quantity=row.quantity,
        unit_price=row.price_per_unit,
        subtotal=row.subtotal,
        created_at=row.created_at,
    )


class OrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ═══════════════════════════════════════════════════════════════════════════
    # Writes (caller's transaction)
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, session: AsyncSession, order: Order) -> Result[None, StoreError]:
        try:
            session.add(
                OrderTable(
                    id=order.id,
                    user_id=order.user_id,
                    order_number=order.order_number,
                    total_amount=order.total_amount,
                    status=order.status.value,
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                )
            )
            # Lines reference the order: it must be written first.
            await session.flush()
        except Exception as e:
            return Error(StoreError(f"Failed to create order: {e}", e))
        return Ok(None)

    async def create_line(self, session: AsyncSession, line: OrderLine) -> Result[None, StoreError]:
        try:
            session.add(
                OrderItemTable(
                    id=line.id,
                    order_id=line.order_id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    price_per_unit=line.unit_price,
                    subtotal=line.subtotal,
                    created_at=line.created_at,
                )
            )
            await session.flush()
        except Exception as e:
            return Error(StoreError(f"Failed to create order line: {e}", e))
        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    async def find_recent_by_user(
        self,
        user_id: UserId,
        window: timedelta,
    ) -> Result[list[Order], StoreError]:
        """Orders of the user created within the trailing window, newest first."""
        since = utcnow() - window
        return await self._select_orders(
            select(OrderTable)
            .where(OrderTable.user_id == user_id, OrderTable.created_at > since)
            .order_by(OrderTable.created_at.desc())
        )

    async def list_by_user(self, user_id: UserId) -> Result[list[Order], StoreError]:
        return await self._select_orders(
            select(OrderTable)
            .where(OrderTable.user_id == user_id)
            .order_by(OrderTable.created_at.desc())
        )

    async def get_by_id(self, order_id: OrderId) -> Result[Order | None, StoreError]:
        match await self._select_orders(select(OrderTable).where(OrderTable.id == order_id)):
            case Ok(orders):
                return Ok(orders[0] if orders else None)
            case Error(err):
                return Error(err)

    async def _select_orders(self, stmt: Select[tuple[OrderTable]]) -> Result[list[Order], StoreError]:
        try:
            async with self._session_factory() as session:
                rows: Sequence[OrderTable] = (await session.execute(stmt)).scalars().all()
                if not rows:
                    return Ok([])

                item_rows = (
                    await session.execute(
                        select(OrderItemTable)
                        .where(OrderItemTable.order_id.in_([r.id for r in rows]))
                        .order_by(OrderItemTable.created_at, OrderItemTable.id)
                    )
                ).scalars().all()
        except Exception as e:
            return Error(StoreError(f"Failed to read orders: {e}", e))

        lines_by_order: dict[str, list[OrderLine]] = {}
        for item in item_rows:
            lines_by_order.setdefault(item.order_id, []).append(_to_line(item))

        return Ok([_to_order(r, tuple(lines_by_order.get(r.id, ()))) for r in rows])


__all__ = ("OrderStore",)
