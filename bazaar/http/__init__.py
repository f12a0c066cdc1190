"""
HTTP — FastAPI surface over checkout, cart, orders and inventory.

    from bazaar.http import Services, TokenBucketLimiter, create_app
    from combinators import RateLimitPolicy

    session_factory, _ = await create_database(settings.database_url)
    app = create_app(
        Services.from_session_factory(session_factory, settings.checkout_policy()),
        limiter=TokenBucketLimiter(RateLimitPolicy(max_per_second=1, burst=2)),
    )

Identity comes from the ``X-User-ID`` header (see ``current_user``).
For a server process: ``uvicorn --factory bazaar.http:app_from_settings``.
"""

from bazaar.http._limiter import (
    RateLimiter,
    AllowAll,
    TokenBucketLimiter,
)
from bazaar.http._schemas import (
    OrderLineOut,
    OrderOut,
    AddToCartIn,
    UpdateCartItemIn,
    CartLineOut,
    CartOut,
    HoldingOut,
    AdjustCoinsIn,
    BalanceOut,
    ClearedOut,
)
from bazaar.http._app import (
    CHECKOUT_STATUS,
    CART_STATUS,
    LEDGER_STATUS,
    Services,
    current_user,
    create_app,
    app_from_settings,
)

__all__ = (
    # Limiting
    "RateLimiter",
    "AllowAll",
    "TokenBucketLimiter",
    # Schemas
    "OrderLineOut",
    "OrderOut",
    "AddToCartIn",
    "UpdateCartItemIn",
    "CartLineOut",
    "CartOut",
    "HoldingOut",
    "AdjustCoinsIn",
    "BalanceOut",
    "ClearedOut",
    # App
    "CHECKOUT_STATUS",
    "CART_STATUS",
    "LEDGER_STATUS",
    "Services",
    "current_user",
    "create_app",
    "app_from_settings",
)
