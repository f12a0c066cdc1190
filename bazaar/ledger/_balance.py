"""
Balance ledger — locked read, conditional debit, credit.
"""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from bazaar._types import Coins, UserId, utcnow
from bazaar.db import UserTable
from bazaar.ledger._types import AccountRow, LedgerError, LedgerErrors


async def lock_account(
    session: AsyncSession,
    user_id: UserId,
) -> Result[AccountRow | None, LedgerError]:
    """Lock the user row. Ok(None) if the user does not exist."""
    try:
        stmt = select(UserTable.id, UserTable.balance).where(UserTable.id == user_id).with_for_update()
        row = (await session.execute(stmt)).one_or_none()
    except Exception as e:
        return Error(LedgerErrors.store(f"Failed to lock account {user_id}", e))

    if row is None:
        return Ok(None)
    return Ok(AccountRow(id=row.id, balance=row.balance))


async def _apply(
    session: AsyncSession,
    user_id: UserId,
    delta: Coins,
) -> Result[int, LedgerError]:
    """Apply delta; negative deltas only where balance covers them. Returns rowcount."""
    conditions = [UserTable.id == user_id]
    if delta < 0:
        conditions.append(UserTable.balance >= -delta)

    try:
        stmt = (
            update(UserTable)
            .where(*conditions)
            .values(balance=UserTable.balance + delta, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        cursor = cast(CursorResult[Any], await session.execute(stmt))
    except Exception as e:
        return Error(LedgerErrors.store(f"Failed to update balance of {user_id}", e))

    return Ok(cursor.rowcount)


async def debit(
    session: AsyncSession,
    user_id: UserId,
    amount: Coins,
) -> Result[None, LedgerError]:
    """
    ``balance = balance - amount WHERE balance >= amount``.

    Fails closed: zero rows affected is INSUFFICIENT, never a negative balance.
    """
    if amount < 0:
        return Error(LedgerErrors.invalid_amount(f"debit must not be negative, got {amount}"))
    if amount == 0:
        return Ok(None)

    match await _apply(session, user_id, -amount):
        case Error(err):
            return Error(err)
        case Ok(0):
            return Error(LedgerErrors.insufficient(f"insufficient coins for {user_id}: need {amount}"))
        case Ok(_):
            return Ok(None)


async def credit(
    session: AsyncSession,
    user_id: UserId,
    amount: Coins,
) -> Result[None, LedgerError]:
    if amount <= 0:
        return Error(LedgerErrors.invalid_amount(f"credit must be positive, got {amount}"))

    match await _apply(session, user_id, amount):
        case Error(err):
            return Error(err)
        case Ok(0):
            return Error(LedgerErrors.not_found("user", user_id))
        case Ok(_):
            return Ok(None)


async def adjust_balance(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UserId,
    amount: Coins,
) -> Result[Coins, LedgerError]:
    """
    Administrative adjustment in its own transaction.

    Positive amounts credit, negative amounts debit. Returns the new balance.
    """
    if amount == 0:
        return Error(LedgerErrors.invalid_amount("amount must be non-zero"))

    try:
        async with session_factory() as session, session.begin():
            match await lock_account(session, user_id):
                case Error(err):
                    return Error(err)
                case Ok(None):
                    return Error(LedgerErrors.not_found("user", user_id))
                case Ok(AccountRow(balance=balance)):
                    pass

            if amount > 0:
                changed = await credit(session, user_id, amount)
            else:
                changed = await debit(session, user_id, -amount)

            match changed:
                case Error(err):
                    return Error(err)
                case Ok(_):
                    return Ok(balance + amount)
    except Exception as e:
        return Error(LedgerErrors.store(f"Failed to adjust balance of {user_id}", e))


__all__ = (
    "lock_account",
    "debit",
    "credit",
    "adjust_balance",
)
