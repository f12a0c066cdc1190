"""
Checkout — cart to order in one transaction, via nodnod graphs.

    from bazaar import checkout as CO

    # Builder API
    executor = (
        CO.checkout(session_factory)
        .policy(CO.Policy().with_duplicate_window(seconds=15).with_deadline(seconds=5))
        .build()
    )
    result = await executor.run(user_id)

    # Graph API
    spec = CO.CheckoutSpec(
        user_id=user_id,
        stores=CO.Stores.from_session_factory(session_factory),
        policy=CO.Policy(),
    )
    result = await CO.run_checkout(spec)

Architecture — state nodes validate, polymorphic routes:

    CheckoutSpec
         │
         ▼
    SpecNode → PrecheckNode
                    │
      ┌──────────┬──┴────────────┬─────────────────┐
      ▼          ▼               ▼                 ▼
    StoreError  EmptyCart   DuplicateOrder   FreshCheckout
      │          │               │                 │ (BEGIN … COMMIT)
      └──────────┴───────┬───────┴─────────────────┘
                         ▼
             CheckoutOutcome (@polymorphic)
                         │
                         ▼
                  FinalResultNode
"""

from bazaar.checkout._types import (
    CheckoutResult,
    CheckoutErrorKind,
    CheckoutError,
    CheckoutErrors,
    Stores,
)
from bazaar.checkout._policy import (
    DEFAULT_DUPLICATE_WINDOW,
    Policy,
)
from bazaar.checkout._tx import (
    place_order,
    checkout_transaction,
)
from bazaar.checkout._graph import (
    CheckoutSpec,
    run_checkout,
    Outcome,
    OutcomeOk,
    OutcomeError,
    SpecNode,
    PrecheckNode,
    StoreErrorNode,
    EmptyCartNode,
    DuplicateOrderNode,
    FreshCheckoutNode,
    CheckoutOutcome,
    FinalResultNode,
)
from bazaar.checkout._builder import (
    Checkout,
    CheckoutExecutor,
    checkout,
)

__all__ = (
    # Types
    "CheckoutResult",
    "CheckoutErrorKind",
    "CheckoutError",
    "CheckoutErrors",
    "Stores",
    # Policy
    "DEFAULT_DUPLICATE_WINDOW",
    "Policy",
    # Transaction
    "place_order",
    "checkout_transaction",
    # Graph
    "CheckoutSpec",
    "run_checkout",
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
    # Builder
    "Checkout",
    "CheckoutExecutor",
    "checkout",
)
