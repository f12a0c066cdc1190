"""
Stock ledger — locked reads and conditional decrement of product stock.

Every function takes the caller's session and must run inside an open
transaction; none of them commits.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from kungfu import Result, Ok, Error

from bazaar._types import ProductId, utcnow
from bazaar.db import ProductTable
from bazaar.ledger._types import ProductRow, LedgerError, LedgerErrors


_PRODUCT_COLUMNS = (
    ProductTable.id,
    ProductTable.name,
    ProductTable.price,
    ProductTable.stock,
    ProductTable.is_available,
)


async def lock_product(
    session: AsyncSession,
    product_id: ProductId,
) -> Result[ProductRow | None, LedgerError]:
    """Lock the product row and return its current state. Ok(None) if missing."""
    try:
        stmt = select(*_PRODUCT_COLUMNS).where(ProductTable.id == product_id).with_for_update()
        row = (await session.execute(stmt)).one_or_none()
    except Exception as e:
        return Error(LedgerErrors.store(f"Failed to lock product {product_id}", e))

    if row is None:
        return Ok(None)
    return Ok(
        ProductRow(
            id=row.id,
            name=row.name,
            price=row.price,
            stock=row.stock,
            is_available=row.is_available,
        )
    )


async def lock_products(
    session: AsyncSession,
    product_ids: Iterable[ProductId],
) -> Result[dict[ProductId, ProductRow | None], LedgerError]:
    """
    Lock several products, one at a time, in ascending id order.

    Note: The fixed order is what keeps two checkouts sharing products
    from deadlocking on each other.
    """
    locked: dict[ProductId, ProductRow | None] = {}
    for product_id in sorted(set(product_ids)):
        match await lock_product(session, product_id):
            case Ok(row):
                locked[product_id] = row
            case Error(err):
                return Error(err)
    return Ok(locked)


async def decrement_stock(
    session: AsyncSession,
    product_id: ProductId,
    quantity: int,
) -> Result[None, LedgerError]:
    """
    ``stock = stock - quantity WHERE stock >= quantity``.

    Zero rows affected means the product is gone or short. Safe even without
    a preceding lock_product.
    """
    if quantity <= 0:
        return Error(LedgerErrors.invalid_amount(f"quantity must be positive, got {quantity}"))

    try:
        stmt = (
            update(ProductTable)
            .where(ProductTable.id == product_id, ProductTable.stock >= quantity)
            .values(stock=ProductTable.stock - quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        cursor = cast(CursorResult[Any], await session.execute(stmt))
    except Exception as e:
        return Error(LedgerErrors.store(f"Failed to decrement stock of {product_id}", e))

    if cursor.rowcount == 0:
        return Error(
            LedgerErrors.insufficient(f"insufficient stock for {product_id}: requested {quantity}")
        )
    return Ok(None)


__all__ = (
    "lock_product",
    "lock_products",
    "decrement_stock",
)
