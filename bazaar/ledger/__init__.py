"""
Ledgers — product stock and user balance.

Both are numbers that must never go negative and only change through a
conditional UPDATE inside the caller's transaction.

    from bazaar import ledger

    async with session_factory() as session, session.begin():
        match await ledger.lock_account(session, user_id):
            case Ok(account) if account is not None and account.balance >= total:
                await ledger.debit(session, user_id, total)
"""

from bazaar.ledger._types import (
    ProductRow,
    AccountRow,
    LedgerErrorKind,
    LedgerError,
    LedgerErrors,
)
from bazaar.ledger._stock import (
    lock_product,
    lock_products,
    decrement_stock,
)
from bazaar.ledger._balance import (
    lock_account,
    debit,
    credit,
    adjust_balance,
)

__all__ = (
    "ProductRow",
    "AccountRow",
    "LedgerErrorKind",
    "LedgerError",
    "LedgerErrors",
    "lock_product",
    "lock_products",
    "decrement_stock",
    "lock_account",
    "debit",
    "credit",
    "adjust_balance",
)
