"""
Checkout graph — the pre-transaction decisions as nodnod nodes.

Architecture:
    CheckoutSpec (injected)
         │
         ▼
    SpecNode
         │
         ▼
    PrecheckNode (cart snapshot + recent orders, outside any transaction)
         │
         ├── StoreErrorNode ─────┐
         ├── EmptyCartNode ──────┤
         ├── DuplicateOrderNode ─┼── CheckoutOutcome (@polymorphic)
         └── FreshCheckoutNode ──┘             │
                                               ▼
                                        FinalResultNode

State nodes are mutually exclusive; exactly one case of the outcome
applies. Only FreshCheckoutNode opens a transaction.

Note: No 'from __future__ import annotations' — nodnod resolves type hints
at runtime for dependency resolution.
"""

from dataclasses import dataclass

import structlog
from nodnod import NodeError, polymorphic, case

from kungfu import Result, Ok, Error

from bazaar import graph as G
from bazaar._store import StoreError
from bazaar._types import UserId
from bazaar.cart import CartSummary
from bazaar.orders import Order
from bazaar.checkout._policy import Policy
from bazaar.checkout._types import (
    CheckoutResult,
    CheckoutError,
    CheckoutErrors,
    Stores,
)
from bazaar.checkout._tx import checkout_transaction

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CheckoutSpec:
    """Everything one checkout request needs."""

    user_id: UserId
    stores: Stores
    policy: Policy


# ═══════════════════════════════════════════════════════════════════════════════
# Entry Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class SpecNode:
    """Wraps CheckoutSpec for graph."""

    def __init__(self, spec: CheckoutSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: CheckoutSpec) -> "SpecNode":
        return cls(spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Pre-check — no transaction
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class PrecheckNode:
    """
    Reads the cart and, for a non-empty cart, the user's recent orders.

    Store failures are recorded, not raised: StoreErrorNode picks them up.
    """

    def __init__(
        self,
        spec: CheckoutSpec,
        cart: CartSummary | None,
        recent: tuple[Order, ...],
        store_error: StoreError | None = None,
    ) -> None:
        self.spec = spec
        self.cart = cart
        self.recent = recent
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, spec_node: SpecNode) -> "PrecheckNode":
        spec = spec_node.spec

        match await spec.stores.cart.snapshot(spec.user_id):
            case Error(err):
                return cls(spec, None, (), store_error=err)
            case Ok(cart):
                pass

        window = spec.policy.duplicate_window
        if cart.is_empty or window is None:
            return cls(spec, cart, ())

        match await spec.stores.orders.find_recent_by_user(spec.user_id, window):
            case Error(err):
                return cls(spec, cart, (), store_error=err)
            case Ok(recent):
                return cls(spec, cart, tuple(recent))


# ═══════════════════════════════════════════════════════════════════════════════
# State Nodes — each validates one situation
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class StoreErrorNode:
    """Validates: pre-check could not read the store."""

    def __init__(self, error: StoreError, spec: CheckoutSpec) -> None:
        self.error = error
        self.spec = spec

    @classmethod
    def __compose__(cls, precheck: PrecheckNode) -> "StoreErrorNode":
        if precheck.store_error is None:
            raise NodeError("No store error")
        return cls(precheck.store_error, precheck.spec)


@G.node
class EmptyCartNode:
    """Validates: cart read fine and has no lines."""

    def __init__(self, spec: CheckoutSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, precheck: PrecheckNode) -> "EmptyCartNode":
        if precheck.store_error is not None:
            raise NodeError("Store error")
        if precheck.cart is None or not precheck.cart.is_empty:
            raise NodeError("Cart has lines")
        return cls(precheck.spec)


@G.node
class DuplicateOrderNode:
    """
    Validates: a recent order of this user has exactly the cart's total.

    Note: Matching by total only. Two different carts with the same total
    inside the window are treated as the same request.
    """

    def __init__(self, order: Order, spec: CheckoutSpec) -> None:
        self.order = order
        self.spec = spec

    @classmethod
    def __compose__(cls, precheck: PrecheckNode) -> "DuplicateOrderNode":
        if precheck.store_error is not None:
            raise NodeError("Store error")
        cart = precheck.cart
        if cart is None or cart.is_empty:
            raise NodeError("Empty cart")
        for order in precheck.recent:
            if order.total_amount == cart.total_price:
                return cls(order, precheck.spec)
        raise NodeError("No duplicate")


@G.node
class FreshCheckoutNode:
    """Validates: non-empty cart and no recent duplicate."""

    def __init__(self, cart: CartSummary, spec: CheckoutSpec) -> None:
        self.cart = cart
        self.spec = spec

    @classmethod
    def __compose__(cls, precheck: PrecheckNode) -> "FreshCheckoutNode":
        if precheck.store_error is not None:
            raise NodeError("Store error")
        cart = precheck.cart
        if cart is None or cart.is_empty:
            raise NodeError("Empty cart")
        if any(order.total_amount == cart.total_price for order in precheck.recent):
            raise NodeError("Duplicate")
        return cls(cart, precheck.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Outcome Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OutcomeOk:
    order: Order
    duplicate: bool


@dataclass(frozen=True)
class OutcomeError:
    error: CheckoutError


type Outcome = OutcomeOk | OutcomeError


# ═══════════════════════════════════════════════════════════════════════════════
# Polymorphic Outcome
# ═══════════════════════════════════════════════════════════════════════════════


@polymorphic[Outcome]
class CheckoutOutcome:
    """Polymorphic router — each @case depends on one validated state node."""

    @case
    def store_error(cls, node: StoreErrorNode) -> Outcome:
        logger.error(
            "checkout.precheck_failed",
            user_id=node.spec.user_id,
            error=node.error.message,
            exc_info=node.error.cause,
        )
        return OutcomeError(CheckoutErrors.internal())

    @case
    def empty_cart(cls, node: EmptyCartNode) -> Outcome:
        return OutcomeError(CheckoutErrors.empty_cart())

    @case
    def duplicate(cls, node: DuplicateOrderNode) -> Outcome:
        logger.info(
            "checkout.duplicate",
            user_id=node.spec.user_id,
            order_number=node.order.order_number,
            total=node.order.total_amount,
        )
        return OutcomeOk(node.order, duplicate=True)

    @case
    async def execute(cls, node: FreshCheckoutNode) -> Outcome:
        spec = node.spec
        result = await checkout_transaction(spec.stores, spec.user_id, node.cart, spec.policy)

        match result:
            case Ok(order):
                logger.info(
                    "checkout.committed",
                    user_id=spec.user_id,
                    order_number=order.order_number,
                    total=order.total_amount,
                    lines=len(order.lines),
                )
                return OutcomeOk(order, duplicate=False)
            case Error(err):
                return OutcomeError(err)


# ═══════════════════════════════════════════════════════════════════════════════
# Final Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class FinalResultNode:
    """Converts Outcome to typed Result."""

    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome

    @classmethod
    def __compose__(cls, outcome: CheckoutOutcome) -> "FinalResultNode":
        return cls(outcome.value)

    def to_result(self) -> Result[CheckoutResult, CheckoutError]:
        match self.outcome:
            case OutcomeOk(order=order, duplicate=duplicate):
                return Ok(CheckoutResult(order=order, duplicate=duplicate))
            case OutcomeError(error=error):
                return Error(error)


# ═══════════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════════


async def run_checkout(spec: CheckoutSpec) -> Result[CheckoutResult, CheckoutError]:
    """Run one checkout through the graph."""
    node = await G.run(FinalResultNode).inject(spec)
    return node.to_result()


__all__ = (
    "CheckoutSpec",
    "Outcome",
    "OutcomeOk",
    "OutcomeError",
    "SpecNode",
    "PrecheckNode",
    "StoreErrorNode",
    "EmptyCartNode",
    "DuplicateOrderNode",
    "FreshCheckoutNode",
    "CheckoutOutcome",
    "FinalResultNode",
    "run_checkout",
)
