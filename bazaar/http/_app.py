"""
FastAPI application — routes over the checkout, cart, orders and inventory.

Status codes come from error kinds through the tables below, never from
message text.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any, NoReturn

import fastapi
import structlog
from fastapi import Depends, Header, HTTPException, Request, Response

from combinators import RateLimitPolicy
from kungfu import Ok, Error
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bazaar import ledger
from bazaar._store import StoreError
from bazaar.cart import CartError, CartErrorKind
from bazaar.checkout import (
    CheckoutErrorKind,
    CheckoutExecutor,
    Policy,
    Stores,
    checkout,
)
from bazaar.config import Settings
from bazaar.db import Base, create_engine
from bazaar.ledger import LedgerError, LedgerErrorKind
from bazaar.logging import bind_request_context, clear_request_context, configure_logging
from bazaar.http._limiter import AllowAll, RateLimiter, TokenBucketLimiter
from bazaar.http._schemas import (
    AddToCartIn,
    AdjustCoinsIn,
    BalanceOut,
    CartOut,
    ClearedOut,
    HoldingOut,
    OrderOut,
    UpdateCartItemIn,
)

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Error → status tables
# ═══════════════════════════════════════════════════════════════════════════════

CHECKOUT_STATUS: dict[CheckoutErrorKind, int] = {
    CheckoutErrorKind.EMPTY_CART: 400,
    CheckoutErrorKind.INSUFFICIENT_FUNDS: 402,
    CheckoutErrorKind.INSUFFICIENT_STOCK: 409,
    CheckoutErrorKind.PRODUCT_UNAVAILABLE: 409,
    CheckoutErrorKind.INTERNAL: 500,
}

CART_STATUS: dict[CartErrorKind, int] = {
    CartErrorKind.INVALID_QUANTITY: 400,
    CartErrorKind.PRODUCT_NOT_FOUND: 404,
    CartErrorKind.ITEM_NOT_FOUND: 404,
    CartErrorKind.INSUFFICIENT_STOCK: 409,
    CartErrorKind.STORE: 500,
}

LEDGER_STATUS: dict[LedgerErrorKind, int] = {
    LedgerErrorKind.INVALID_AMOUNT: 400,
    LedgerErrorKind.INSUFFICIENT: 400,
    LedgerErrorKind.NOT_FOUND: 404,
    LedgerErrorKind.STORE: 500,
}


def _internal(event: str, error: StoreError | CartError | LedgerError) -> NoReturn:
    logger.error(event, error=error.message, exc_info=error.cause)
    raise HTTPException(status_code=500, detail="internal error")


def _cart_failure(error: CartError) -> NoReturn:
    if error.kind is CartErrorKind.STORE:
        _internal("cart.store_failed", error)
    raise HTTPException(status_code=CART_STATUS[error.kind], detail=error.message)


def _ledger_failure(error: LedgerError) -> NoReturn:
    if error.kind is LedgerErrorKind.STORE:
        _internal("ledger.store_failed", error)
    raise HTTPException(status_code=LEDGER_STATUS[error.kind], detail=error.message)


# ═══════════════════════════════════════════════════════════════════════════════
# Services
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Services:
    session_factory: async_sessionmaker[AsyncSession]
    stores: Stores
    checkout: CheckoutExecutor

    @classmethod
    def from_session_factory(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        policy: Policy | None = None,
    ) -> Services:
        builder = checkout(session_factory)
        if policy is not None:
            builder = builder.policy(policy)
        executor = builder.build()
        return cls(session_factory=session_factory, stores=executor.stores, checkout=executor)


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


async def current_user(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """
    Caller identity. Token verification lives in front of this service;
    override this dependency to plug a different scheme in.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="unauthorized")
    bind_request_context(user_id=x_user_id)
    return x_user_id


CurrentUser = Annotated[str, Depends(current_user)]


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


type Lifespan = Callable[[fastapi.FastAPI], AbstractAsyncContextManager[None]]


def create_app(
    services: Services,
    *,
    limiter: RateLimiter | None = None,
    lifespan: Lifespan | None = None,
) -> fastapi.FastAPI:
    """
    Build the HTTP app.

    Example:
        session_factory, _ = await create_database(settings.database_url)
        app = create_app(
            Services.from_session_factory(session_factory, settings.checkout_policy()),
            limiter=TokenBucketLimiter(RateLimitPolicy(max_per_second=1, burst=2)),
        )
    """
    rate_limiter: RateLimiter = limiter if limiter is not None else AllowAll()

    async def rate_limited(request: Request) -> None:
        clear_request_context()
        client = request.client.host if request.client else "unknown"
        bind_request_context(client=client, path=request.url.path)
        if not rate_limiter.allow(client):
            logger.info("http.rate_limited")
            raise HTTPException(status_code=429, detail="rate limit exceeded")

    app = fastapi.FastAPI(title="bazaar", dependencies=[Depends(rate_limited)], lifespan=lifespan)
    app.state.services = services
    app.state.limiter = rate_limiter
    stores = services.stores

    # ─── Orders ─────────────────────────────────────────────────────────────

    @app.post("/orders", status_code=201, response_model=OrderOut)
    async def create_order(user_id: CurrentUser) -> Any:
        match await services.checkout.run(user_id):
            case Ok(result):
                return OrderOut.from_domain(result.order)
            case Error(err):
                raise HTTPException(status_code=CHECKOUT_STATUS[err.kind], detail=err.message)

    @app.get("/orders", response_model=list[OrderOut])
    async def list_orders(user_id: CurrentUser) -> Any:
        match await stores.orders.list_by_user(user_id):
            case Ok(found):
                return [OrderOut.from_domain(order) for order in found]
            case Error(err):
                _internal("orders.read_failed", err)

    @app.get("/orders/{order_id}", response_model=OrderOut)
    async def get_order(order_id: str, user_id: CurrentUser) -> Any:
        match await stores.orders.get_by_id(order_id):
            case Ok(order) if order is not None and order.user_id == user_id:
                return OrderOut.from_domain(order)
            case Ok(_):
                raise HTTPException(status_code=404, detail="order not found")
            case Error(err):
                _internal("orders.read_failed", err)

    # ─── Cart ───────────────────────────────────────────────────────────────

    async def cart_of(user_id: str) -> CartOut:
        match await stores.cart.snapshot(user_id):
            case Ok(cart):
                return CartOut.from_domain(cart)
            case Error(err):
                _internal("cart.read_failed", err)

    @app.get("/cart", response_model=CartOut)
    async def get_cart(user_id: CurrentUser) -> Any:
        return await cart_of(user_id)

    @app.post("/cart", status_code=201, response_model=CartOut)
    async def add_to_cart(body: AddToCartIn, user_id: CurrentUser) -> Any:
        match await stores.cart.add(user_id, body.product_id, body.quantity):
            case Error(err):
                _cart_failure(err)
        return await cart_of(user_id)

    @app.put("/cart/{item_id}", response_model=CartOut)
    async def update_cart_item(item_id: str, body: UpdateCartItemIn, user_id: CurrentUser) -> Any:
        match await stores.cart.update_quantity(user_id, item_id, body.quantity):
            case Error(err):
                _cart_failure(err)
        return await cart_of(user_id)

    @app.delete("/cart/{item_id}", status_code=204)
    async def remove_cart_item(item_id: str, user_id: CurrentUser) -> Response:
        match await stores.cart.remove(user_id, item_id):
            case Error(err):
                _cart_failure(err)
        return Response(status_code=204)

    # ─── Inventory ──────────────────────────────────────────────────────────

    @app.get("/inventory", response_model=list[HoldingOut])
    async def get_inventory(user_id: CurrentUser) -> Any:
        match await stores.inventory.list_by_user(user_id):
            case Ok(holdings):
                return [HoldingOut.from_domain(h) for h in holdings]
            case Error(err):
                _internal("inventory.read_failed", err)

    # ─── Admin ──────────────────────────────────────────────────────────────

    @app.patch("/admin/users/{target_id}/coins", response_model=BalanceOut)
    async def adjust_coins(target_id: str, body: AdjustCoinsIn, user_id: CurrentUser) -> Any:
        match await ledger.adjust_balance(services.session_factory, target_id, body.amount):
            case Ok(balance):
                logger.info("admin.coins_adjusted", target=target_id, amount=body.amount)
                return BalanceOut(new_balance=balance)
            case Error(err):
                _ledger_failure(err)

    @app.delete("/admin/users/{target_id}/inventory", response_model=ClearedOut)
    async def clear_inventory(target_id: str, user_id: CurrentUser) -> Any:
        match await stores.inventory.clear(target_id):
            case Ok(removed):
                logger.info("admin.inventory_cleared", target=target_id, removed=removed)
                return ClearedOut(removed=removed)
            case Error(err):
                _internal("inventory.clear_failed", err)

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Process entry
# ═══════════════════════════════════════════════════════════════════════════════


def app_from_settings(settings: Settings | None = None) -> fastapi.FastAPI:
    """
    Production app: logging, database and limiter all taken from settings.

    Example:
        uvicorn --factory bazaar.http:app_from_settings
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)

    engine = create_engine(settings.database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def lifespan(_: fastapi.FastAPI) -> AsyncIterator[None]:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("app.started", environment=settings.environment)
        try:
            yield
        finally:
            await engine.dispose()

    limiter = TokenBucketLimiter(
        RateLimitPolicy(
            max_per_second=settings.rate_limit_per_second,
            burst=settings.rate_limit_burst,
        )
    )
    return create_app(
        Services.from_session_factory(session_factory, settings.checkout_policy()),
        limiter=limiter,
        lifespan=lifespan,
    )


__all__ = (
    "CHECKOUT_STATUS",
    "CART_STATUS",
    "LEDGER_STATUS",
    "Services",
    "current_user",
    "create_app",
    "app_from_settings",
)
