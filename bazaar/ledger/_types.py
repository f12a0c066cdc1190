"""
Ledger types — locked snapshots and errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from bazaar._types import Coins, ProductId, UserId


# ═══════════════════════════════════════════════════════════════════════════════
# Locked Snapshots
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductRow:
    """Product as read under a row lock. Valid until the transaction ends."""

    id: ProductId
    name: str
    price: Coins
    stock: int
    is_available: bool


@dataclass(frozen=True, slots=True)
class AccountRow:
    """User balance as read under a row lock."""

    id: UserId
    balance: Coins


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class LedgerErrorKind(Enum):
    NOT_FOUND = auto()  # Row does not exist
    INSUFFICIENT = auto()  # Conditional decrement matched zero rows
    INVALID_AMOUNT = auto()  # Non-positive quantity or zero adjustment
    STORE = auto()  # Storage backend error


@dataclass(frozen=True, slots=True)
class LedgerError:
    kind: LedgerErrorKind
    message: str
    cause: Exception | None = None


class LedgerErrors:
    """Factory namespace for LedgerError."""

    @staticmethod
    def not_found(what: str, ident: str) -> LedgerError:
        return LedgerError(LedgerErrorKind.NOT_FOUND, f"{what} not found: {ident}")

    @staticmethod
    def insufficient(message: str) -> LedgerError:
        return LedgerError(LedgerErrorKind.INSUFFICIENT, message)

    @staticmethod
    def invalid_amount(message: str) -> LedgerError:
        return LedgerError(LedgerErrorKind.INVALID_AMOUNT, message)

    @staticmethod
    def store(message: str, cause: Exception) -> LedgerError:
        return LedgerError(LedgerErrorKind.STORE, f"{message}: {cause}", cause)


__all__ = (
    "ProductRow",
    "AccountRow",
    "LedgerErrorKind",
    "LedgerError",
    "LedgerErrors",
)
