"""
Graph — nodnod computation graphs.

    from bazaar import graph as G

    @G.node
    class LoadCart:
        @classmethod
        async def __compose__(cls, spec: CheckoutSpec) -> LoadCart:
            return cls(await spec.stores.cart.snapshot(spec.user_id))

    node = await G.run(LoadCart).inject(spec)
"""

from nodnod import scalar_node as node

from bazaar.graph._run import (
    Run,
    run,
)

__all__ = (
    "node",
    "run",
    "Run",
)
