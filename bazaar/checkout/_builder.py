"""
Checkout builder — fluent API over graph.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import LazyCoroResult, Result

from bazaar._types import UserId
from bazaar.checkout._policy import Policy
from bazaar.checkout._types import CheckoutResult, CheckoutError, Stores
from bazaar.checkout._graph import CheckoutSpec, run_checkout


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Builder
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class Checkout:
    """Fluent checkout builder."""
    _stores: Stores
    _policy: Policy

    def stores(self, s: Stores) -> Checkout:
        """Replace collaborators (tests, alternative stores)."""
        return Checkout(_stores=s, _policy=self._policy)

    def policy(self, p: Policy) -> Checkout:
        return Checkout(_stores=self._stores, _policy=p)

    def build(self) -> CheckoutExecutor:
        return CheckoutExecutor(stores=self._stores, policy=self._policy)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Executor
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class CheckoutExecutor:
    """
    Compiled checkout.

    Note: Creates a CheckoutSpec and runs the graph. Never retries.
    """
    stores: Stores
    policy: Policy

    def run(self, user_id: UserId) -> LazyCoroResult[CheckoutResult, CheckoutError]:
        """Convert the user's cart into an order."""
        spec = CheckoutSpec(user_id=user_id, stores=self.stores, policy=self.policy)

        async def execute() -> Result[CheckoutResult, CheckoutError]:
            return await run_checkout(spec)

        return LazyCoroResult(execute)


# ═══════════════════════════════════════════════════════════════════════════════
# checkout() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════

def checkout(session_factory: async_sessionmaker[AsyncSession]) -> Checkout:
    """
    Create a checkout over one database.

    Example:
        executor = (
            checkout(session_factory)
            .policy(Policy().with_duplicate_window(seconds=15))
            .build()
        )

        match await executor.run(user_id):
            case Ok(result):
                print(result.order.order_number)
            case Error(err):
                print(err.kind, err.message)
    """
    return Checkout(
        _stores=Stores.from_session_factory(session_factory),
        _policy=Policy(),
    )


__all__ = (
    "Checkout",
    "CheckoutExecutor",
    "checkout",
)
