"""Shared fixtures: a file-backed SQLite database per test plus seeding helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path

import pytest
import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bazaar.db import (
    CartItemTable,
    InventoryTable,
    OrderTable,
    ProductTable,
    UserTable,
    create_database,
)

type SessionFactory = async_sessionmaker[AsyncSession]


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    # configure_logging replaces root handlers and the structlog config
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[SessionFactory]:
    # A file, not :memory:, so every connection of the pool sees the same database.
    factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'bazaar.db'}")
    yield factory
    await engine.dispose()


@pytest.fixture
def make_user(session_factory: SessionFactory) -> Callable[..., Awaitable[str]]:
    async def make(user_id: str = "alice", balance: int = 100) -> str:
        async with session_factory() as session, session.begin():
            session.add(UserTable(id=user_id, username=user_id, balance=balance))
        return user_id

    return make


@pytest.fixture
def make_product(session_factory: SessionFactory) -> Callable[..., Awaitable[str]]:
    async def make(
        product_id: str = "sword",
        *,
        price: int = 30,
        stock: int = 5,
        name: str | None = None,
        category: str = "weapons",
        is_available: bool = True,
    ) -> str:
        async with session_factory() as session, session.begin():
            session.add(
                ProductTable(
                    id=product_id,
                    name=name or product_id.title(),
                    price=price,
                    stock=stock,
                    category=category,
                    is_available=is_available,
                )
            )
        return product_id

    return make


class Peek:
    """Reads committed state straight from the tables."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def balance(self, user_id: str) -> int:
        async with self._session_factory() as session:
            return (await session.execute(select(UserTable.balance).where(UserTable.id == user_id))).scalar_one()

    async def stock(self, product_id: str) -> int:
        async with self._session_factory() as session:
            return (
                await session.execute(select(ProductTable.stock).where(ProductTable.id == product_id))
            ).scalar_one()

    async def cart_size(self, user_id: str) -> int:
        async with self._session_factory() as session:
            stmt = select(func.count()).select_from(CartItemTable).where(CartItemTable.user_id == user_id)
            return (await session.execute(stmt)).scalar_one()

    async def order_count(self, user_id: str) -> int:
        async with self._session_factory() as session:
            stmt = select(func.count()).select_from(OrderTable).where(OrderTable.user_id == user_id)
            return (await session.execute(stmt)).scalar_one()

    async def holding(self, user_id: str, product_id: str) -> int | None:
        async with self._session_factory() as session:
            stmt = select(InventoryTable.quantity).where(
                InventoryTable.user_id == user_id,
                InventoryTable.product_id == product_id,
            )
            return (await session.execute(stmt)).scalar_one_or_none()


@pytest.fixture
def peek(session_factory: SessionFactory) -> Peek:
    return Peek(session_factory)
