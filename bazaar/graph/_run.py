"""
Fluent runner over nodnod.

The target node pulls in its whole dependency graph; callers only inject
the inputs that no node produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node


@dataclass(frozen=True, slots=True)
class Run[T]:
    """
    Awaitable runner for a target node.

    Example:
        node = await run(FinalResultNode).inject(spec)
    """
    _target: type[T]
    _injections: tuple[tuple[type[Any], Any], ...]

    def inject(self, value: object) -> Run[T]:
        """Inject a value keyed by its runtime type."""
        return self.inject_as(cast(type[Any], type(value)), value)

    def inject_as[V](self, typ: type[V], value: V) -> Run[T]:
        """Inject a value under an explicit type (protocols, base classes)."""
        pair: tuple[type[Any], Any] = (typ, value)
        return Run(_target=self._target, _injections=(*self._injections, pair))

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], self._target)})
        scope = Scope(detail=f"run:{self._target.__name__}")

        async with scope:
            for typ, value in self._injections:
                scope.push(Value(typ, value))

            run_method = cast(
                Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
                getattr(agent, "run"),
            )
            await run_method(scope, {})

            found = scope.get(self._target)
            if found is None:
                raise LookupError(f"{self._target.__name__} was not produced")
            return cast(T, found.value)


def run[T](target: type[T]) -> Run[T]:
    return Run(_target=target, _injections=())


__all__ = ("Run", "run")
