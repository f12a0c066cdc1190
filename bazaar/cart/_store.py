"""
Cart store — SQLAlchemy-backed cart accessor.

snapshot() runs in its own short session; clear() joins the caller's
transaction. Cart edits are not locked against a concurrent checkout: the
checkout re-validates against locked product and balance rows.
"""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from bazaar._store import StoreError
from bazaar._types import CartItemId, ProductId, UserId, new_id, utcnow
from bazaar.db import CartItemTable, ProductTable, dialect_insert
from bazaar.cart._types import CartLine, CartSummary, CartError, CartErrors


class CartStore:
    """
    Cart accessor.

    Example:
        carts = CartStore(session_factory)
        await carts.add(user_id, product_id, 2)
        match await carts.snapshot(user_id):
            case Ok(cart):
                print(cart.total_price)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ─── Reads ──────────────────────────────────────────────────────────────

    async def snapshot(self, user_id: UserId) -> Result[CartSummary, StoreError]:
        """Current cart lines with prices resolved from products."""
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(
                        CartItemTable.id,
                        CartItemTable.product_id,
                        CartItemTable.quantity,
                        ProductTable.name,
                        ProductTable.price,
                    )
                    .join(ProductTable, ProductTable.id == CartItemTable.product_id)
                    .where(CartItemTable.user_id == user_id)
                    .order_by(CartItemTable.added_at, CartItemTable.id)
                )
                rows = (await session.execute(stmt)).all()
        except Exception as e:
            return Error(StoreError(f"Failed to read cart: {e}", e))

        lines = [
            CartLine(
                id=row.id,
                product_id=row.product_id,
                product_name=row.name,
                unit_price=row.price,
                quantity=row.quantity,
            )
            for row in rows
        ]
        return Ok(CartSummary.of(user_id, lines))

    # ─── Transactional ──────────────────────────────────────────────────────

    async def clear(self, session: AsyncSession, user_id: UserId) -> Result[int, StoreError]:
        """Delete every line of the user inside the caller's transaction."""
        try:
            stmt = delete(CartItemTable).where(CartItemTable.user_id == user_id)
            cursor = cast(CursorResult[Any], await session.execute(stmt))
        except Exception as e:
            return Error(StoreError(f"Failed to clear cart: {e}", e))
        return Ok(cursor.rowcount)

    # ─── Edits ──────────────────────────────────────────────────────────────

    async def add(
        self,
        user_id: UserId,
        product_id: ProductId,
        quantity: int,
    ) -> Result[None, CartError]:
        """
        Add a product, merging into an existing line.

        The merged quantity must not exceed current stock.
        """
        if quantity <= 0:
            return Error(CartErrors.invalid_quantity(quantity))

        try:
            async with self._session_factory() as session, session.begin():
                product = (
                    await session.execute(
                        select(ProductTable.name, ProductTable.stock, ProductTable.is_available)
                        .where(ProductTable.id == product_id)
                    )
                ).one_or_none()
                if product is None or not product.is_available:
                    return Error(CartErrors.product_not_found(product_id))

                in_cart = (
                    await session.execute(
                        select(CartItemTable.quantity).where(
                            CartItemTable.user_id == user_id,
                            CartItemTable.product_id == product_id,
                        )
                    )
                ).scalar_one_or_none() or 0

                if product.stock < in_cart + quantity:
                    return Error(
                        CartErrors.insufficient_stock(product.name, product.stock, in_cart + quantity)
                    )

                now = utcnow()
                insert = dialect_insert(session, CartItemTable)
                stmt = insert.values(
                    id=new_id(),
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                    added_at=now,
                    updated_at=now,
                ).on_conflict_do_update(
                    index_elements=["user_id", "product_id"],
                    set_={
                        "quantity": CartItemTable.quantity + insert.excluded.quantity,
                        "updated_at": now,
                    },
                )
                await session.execute(stmt)
                return Ok(None)
        except Exception as e:
            return Error(CartErrors.store(f"Failed to add to cart: {e}", e))

    async def update_quantity(
        self,
        user_id: UserId,
        item_id: CartItemId,
        quantity: int,
    ) -> Result[None, CartError]:
        """Set the quantity of one of the user's lines."""
        if quantity <= 0:
            return Error(CartErrors.invalid_quantity(quantity))

        try:
            async with self._session_factory() as session, session.begin():
                stmt = (
                    update(CartItemTable)
                    .where(CartItemTable.id == item_id, CartItemTable.user_id == user_id)
                    .values(quantity=quantity, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))
        except Exception as e:
            return Error(CartErrors.store(f"Failed to update cart item: {e}", e))

        if cursor.rowcount == 0:
            return Error(CartErrors.item_not_found())
        return Ok(None)

    async def remove(self, user_id: UserId, item_id: CartItemId) -> Result[None, CartError]:
        try:
            async with self._session_factory() as session, session.begin():
                stmt = delete(CartItemTable).where(
                    CartItemTable.id == item_id,
                    CartItemTable.user_id == user_id,
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))
        except Exception as e:
            return Error(CartErrors.store(f"Failed to remove cart item: {e}", e))

        if cursor.rowcount == 0:
            return Error(CartErrors.item_not_found())
        return Ok(None)


__all__ = ("CartStore",)
