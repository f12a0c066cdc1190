"""
Checkout transaction — everything between BEGIN and COMMIT.

Lock order is fixed: user row, then product rows by ascending id. Any
failure raises out of ``session.begin()`` so nothing written here outlives
the transaction. Raised exceptions are turned back into CheckoutError at the
edge by ``checkout_transaction``.
"""

from __future__ import annotations

from typing import Any

import structlog
import combinators as C
from combinators import flow, lift as L
from kungfu import LazyCoroResult, Result, Ok, Error

from bazaar import ledger
from bazaar._store import StoreError
from bazaar._types import UserId, new_id, utcnow
from bazaar.cart import CartLine, CartSummary
from bazaar.ledger import LedgerError, LedgerErrorKind, ProductRow
from bazaar.orders import Order, OrderLine, OrderStatus, generate_order_number
from bazaar.checkout._policy import Policy
from bazaar.checkout._types import CheckoutError, CheckoutErrors, Stores

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Abort signals
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutAborted(Exception):
    """Business rule violated. Raised to roll the transaction back."""

    def __init__(self, error: CheckoutError) -> None:
        super().__init__(error.message)
        self.error = error


class StepFailed(Exception):
    """Infrastructure failure at a named step."""

    def __init__(self, step: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step
        self.cause = cause


def _expect[T](result: Result[T, StoreError | LedgerError], step: str) -> T:
    match result:
        case Ok(value):
            return value
        case Error(err):
            raise StepFailed(step, err.message, err.cause)


# ═══════════════════════════════════════════════════════════════════════════════
# Transaction body
# ═══════════════════════════════════════════════════════════════════════════════


async def place_order(stores: Stores, user_id: UserId, cart: CartSummary) -> Order:
    """Validate against locked rows, then apply every mutation. Raises on failure."""
    async with stores.session_factory() as session, session.begin():
        account = _expect(await ledger.lock_account(session, user_id), "lock account")
        if account is None:
            raise StepFailed("lock account", f"user {user_id} does not exist")
        if account.balance < cart.total_price:
            raise CheckoutAborted(CheckoutErrors.insufficient_funds(account.balance, cart.total_price))

        products = _expect(
            await ledger.lock_products(session, (line.product_id for line in cart.lines)),
            "lock products",
        )
        priced: list[tuple[CartLine, ProductRow]] = []
        for line in cart.lines:
            product = products.get(line.product_id)
            if product is None or not product.is_available:
                raise CheckoutAborted(
                    CheckoutErrors.product_unavailable(line.product_id, line.product_name)
                )
            if product.stock < line.quantity:
                raise CheckoutAborted(
                    CheckoutErrors.insufficient_stock(
                        product.id, product.name, product.stock, line.quantity
                    )
                )
            priced.append((line, product))

        # Prices as locked now, not as seen when the cart was read.
        total = sum(product.price * line.quantity for line, product in priced)
        if account.balance < total:
            raise CheckoutAborted(CheckoutErrors.insufficient_funds(account.balance, total))

        now = utcnow()
        order = Order(
            id=new_id(),
            user_id=user_id,
            order_number=generate_order_number(now),
            total_amount=total,
            status=OrderStatus.COMPLETED,
            created_at=now,
            updated_at=now,
        )

        match await ledger.debit(session, user_id, total):
            case Error(LedgerError(kind=LedgerErrorKind.INSUFFICIENT)):
                raise CheckoutAborted(CheckoutErrors.insufficient_funds(account.balance, total))
            case Error(err):
                raise StepFailed("debit balance", err.message, err.cause)
            case Ok(_):
                pass

        _expect(await stores.orders.create(session, order), "insert order")

        lines: list[OrderLine] = []
        for line, product in priced:
            match await ledger.decrement_stock(session, product.id, line.quantity):
                case Error(LedgerError(kind=LedgerErrorKind.INSUFFICIENT)):
                    raise CheckoutAborted(
                        CheckoutErrors.insufficient_stock(
                            product.id, product.name, product.stock, line.quantity
                        )
                    )
                case Error(err):
                    raise StepFailed("decrement stock", err.message, err.cause)
                case Ok(_):
                    pass

            order_line = OrderLine(
                id=new_id(),
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=product.price,
                subtotal=product.price * line.quantity,
                created_at=now,
            )
            _expect(await stores.orders.create_line(session, order_line), "insert order line")
            _expect(
                await stores.inventory.add_holding(session, user_id, product.id, line.quantity),
                "add holding",
            )
            lines.append(order_line)

        _expect(await stores.cart.clear(session, user_id), "clear cart")

    return order.with_lines(tuple(lines))


# ═══════════════════════════════════════════════════════════════════════════════
# Lifting into Result
# ═══════════════════════════════════════════════════════════════════════════════


def _classify(exc: Exception, user_id: UserId) -> CheckoutError:
    if isinstance(exc, CheckoutAborted):
        logger.info("checkout.aborted", user_id=user_id, kind=exc.error.kind.name, reason=exc.error.message)
        return exc.error

    cause = exc.cause if isinstance(exc, StepFailed) else None
    logger.error("checkout.failed", user_id=user_id, error=str(exc), cause=repr(cause), exc_info=exc)
    return CheckoutErrors.internal()


def _classify_deadline(err: Any, user_id: UserId, seconds: float) -> CheckoutError:
    if isinstance(err, C.TimeoutError):
        logger.error("checkout.deadline_exceeded", user_id=user_id, seconds=seconds)
        return CheckoutErrors.internal()
    return err


def checkout_transaction(
    stores: Stores,
    user_id: UserId,
    cart: CartSummary,
    policy: Policy,
) -> LazyCoroResult[Order, CheckoutError]:
    """
    Lazy transactional checkout.

    Note: With a deadline the body is cancelled when time runs out; the
    cancelled ``session.begin()`` rolls back.
    """
    body = L.catching_async(
        lambda: place_order(stores, user_id, cart),
        on_error=lambda exc: _classify(exc, user_id),
    )
    if policy.deadline is None:
        return body

    seconds = policy.deadline.total_seconds()
    return (
        flow(body)
        .timeout(seconds=seconds)
        .compile()
        .map_err(lambda err: _classify_deadline(err, user_id, seconds))
    )


__all__ = (
    "CheckoutAborted",
    "StepFailed",
    "place_order",
    "checkout_transaction",
)
