from __future__ import annotations

import pytest
from kungfu import Error, Ok

from bazaar import ledger
from bazaar.ledger import LedgerErrorKind


class TestStock:
    async def test_lock_product_reads_row(self, session_factory, make_product):
        await make_product("sword", price=30, stock=5)

        async with session_factory() as session, session.begin():
            row = (await ledger.lock_product(session, "sword")).unwrap()

        assert row is not None
        assert (row.price, row.stock, row.is_available) == (30, 5, True)

    async def test_lock_missing_product_is_none(self, session_factory):
        async with session_factory() as session, session.begin():
            assert (await ledger.lock_product(session, "nope")).unwrap() is None

    async def test_lock_products_marks_missing(self, session_factory, make_product):
        await make_product("b")
        await make_product("a")

        async with session_factory() as session, session.begin():
            rows = (await ledger.lock_products(session, ["b", "missing", "a", "b"])).unwrap()

        assert list(rows) == ["a", "b", "missing"]
        assert rows["missing"] is None
        assert rows["a"] is not None

    async def test_decrement_never_goes_negative(self, session_factory, make_product, peek):
        await make_product("sword", stock=2)

        async with session_factory() as session, session.begin():
            match await ledger.decrement_stock(session, "sword", 3):
                case Error(err):
                    assert err.kind is LedgerErrorKind.INSUFFICIENT
                case Ok(_):
                    pytest.fail("stock went negative")

        assert await peek.stock("sword") == 2

    async def test_decrement_to_zero(self, session_factory, make_product, peek):
        await make_product("sword", stock=2)

        async with session_factory() as session, session.begin():
            assert isinstance(await ledger.decrement_stock(session, "sword", 2), Ok)

        assert await peek.stock("sword") == 0

    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_decrement_rejects_non_positive(self, session_factory, make_product, quantity):
        await make_product("sword")

        async with session_factory() as session, session.begin():
            result = await ledger.decrement_stock(session, "sword", quantity)

        assert result.unwrap_err().kind is LedgerErrorKind.INVALID_AMOUNT


class TestBalance:
    async def test_debit_and_credit(self, session_factory, make_user, peek):
        await make_user("alice", balance=100)

        async with session_factory() as session, session.begin():
            assert isinstance(await ledger.debit(session, "alice", 30), Ok)
            assert isinstance(await ledger.credit(session, "alice", 5), Ok)

        assert await peek.balance("alice") == 75

    async def test_debit_fails_closed(self, session_factory, make_user, peek):
        await make_user("alice", balance=10)

        async with session_factory() as session, session.begin():
            result = await ledger.debit(session, "alice", 11)

        assert result.unwrap_err().kind is LedgerErrorKind.INSUFFICIENT
        assert await peek.balance("alice") == 10

    async def test_zero_debit_is_noop(self, session_factory, make_user, peek):
        await make_user("alice", balance=10)

        async with session_factory() as session, session.begin():
            assert isinstance(await ledger.debit(session, "alice", 0), Ok)

        assert await peek.balance("alice") == 10

    async def test_credit_unknown_user(self, session_factory):
        async with session_factory() as session, session.begin():
            result = await ledger.credit(session, "ghost", 5)

        assert result.unwrap_err().kind is LedgerErrorKind.NOT_FOUND

    async def test_negative_amounts_are_invalid(self, session_factory, make_user):
        await make_user("alice")

        async with session_factory() as session, session.begin():
            debit = await ledger.debit(session, "alice", -1)
            credit = await ledger.credit(session, "alice", 0)

        assert debit.unwrap_err().kind is LedgerErrorKind.INVALID_AMOUNT
        assert credit.unwrap_err().kind is LedgerErrorKind.INVALID_AMOUNT


class TestAdjustBalance:
    async def test_credit_returns_new_balance(self, session_factory, make_user):
        await make_user("alice", balance=100)

        assert (await ledger.adjust_balance(session_factory, "alice", 50)).unwrap() == 150

    async def test_debit_returns_new_balance(self, session_factory, make_user):
        await make_user("alice", balance=100)

        assert (await ledger.adjust_balance(session_factory, "alice", -40)).unwrap() == 60

    async def test_debit_below_zero_rejected(self, session_factory, make_user, peek):
        await make_user("alice", balance=10)

        result = await ledger.adjust_balance(session_factory, "alice", -11)

        assert result.unwrap_err().kind is LedgerErrorKind.INSUFFICIENT
        assert await peek.balance("alice") == 10

    async def test_unknown_user(self, session_factory):
        result = await ledger.adjust_balance(session_factory, "ghost", 10)

        assert result.unwrap_err().kind is LedgerErrorKind.NOT_FOUND

    async def test_zero_rejected(self, session_factory, make_user):
        await make_user("alice")

        result = await ledger.adjust_balance(session_factory, "alice", 0)

        assert result.unwrap_err().kind is LedgerErrorKind.INVALID_AMOUNT
