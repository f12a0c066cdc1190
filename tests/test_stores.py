from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from bazaar._types import utcnow
from bazaar.inventory import InventoryStore
from bazaar.orders import Order, OrderLine, OrderStatus, OrderStore, generate_order_number


def _order(order_id: str, user_id: str, total: int, created_at: datetime) -> Order:
    return Order(
        id=order_id,
        user_id=user_id,
        order_number=generate_order_number(created_at),
        total_amount=total,
        status=OrderStatus.COMPLETED,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def orders(session_factory) -> OrderStore:
    return OrderStore(session_factory)


@pytest.fixture
def inventory(session_factory) -> InventoryStore:
    return InventoryStore(session_factory)


class TestOrderNumber:
    def test_format(self):
        number = generate_order_number(datetime(2024, 3, 9, 12, 0))

        assert number.startswith("ORD-240309-")
        suffix = number.removeprefix("ORD-240309-")
        assert len(suffix) == 6
        assert suffix == suffix.upper()

    def test_unique(self):
        now = utcnow()
        assert len({generate_order_number(now) for _ in range(50)}) == 50


class TestOrderStore:
    async def test_create_and_read_back_with_lines(self, session_factory, orders, make_user, make_product):
        await make_user("alice")
        await make_product("sword")
        now = utcnow()
        order = _order("o1", "alice", 60, now)
        line = OrderLine(
            id="l1",
            order_id="o1",
            product_id="sword",
            product_name="Sword",
            quantity=2,
            unit_price=30,
            subtotal=60,
            created_at=now,
        )

        async with session_factory() as session, session.begin():
            (await orders.create(session, order)).unwrap()
            (await orders.create_line(session, line)).unwrap()

        found = (await orders.get_by_id("o1")).unwrap()
        assert found is not None
        assert found.total_amount == 60
        assert found.status is OrderStatus.COMPLETED
        assert [(l.product_name, l.unit_price, l.subtotal) for l in found.lines] == [("Sword", 30, 60)]

    async def test_missing_order_is_none(self, orders):
        assert (await orders.get_by_id("nope")).unwrap() is None

    async def test_recent_respects_window_and_user(self, session_factory, orders, make_user):
        await make_user("alice")
        await make_user("bob")
        now = utcnow()

        async with session_factory() as session, session.begin():
            await orders.create(session, _order("old", "alice", 10, now - timedelta(minutes=5)))
            await orders.create(session, _order("new", "alice", 20, now - timedelta(seconds=1)))
            await orders.create(session, _order("bobs", "bob", 20, now))

        recent = (await orders.find_recent_by_user("alice", timedelta(seconds=15))).unwrap()
        everything = (await orders.list_by_user("alice")).unwrap()

        assert [o.id for o in recent] == ["new"]
        assert [o.id for o in everything] == ["new", "old"]


class TestInventoryStore:
    async def test_holdings_upsert_and_list(self, session_factory, inventory, make_user, make_product):
        await make_user("alice")
        await make_product("sword", category="weapons")

        async with session_factory() as session, session.begin():
            (await inventory.add_holding(session, "alice", "sword", 2)).unwrap()
        async with session_factory() as session, session.begin():
            (await inventory.add_holding(session, "alice", "sword", 3)).unwrap()

        [holding] = (await inventory.list_by_user("alice")).unwrap()
        assert holding.product_name == "Sword"
        assert holding.category == "weapons"
        assert holding.quantity == 5

    async def test_clear(self, session_factory, inventory, make_user, make_product):
        await make_user("alice")
        await make_product("sword")
        await make_product("axe")
        async with session_factory() as session, session.begin():
            await inventory.add_holding(session, "alice", "sword", 1)
            await inventory.add_holding(session, "alice", "axe", 1)

        assert (await inventory.clear("alice")).unwrap() == 2
        assert (await inventory.list_by_user("alice")).unwrap() == []
