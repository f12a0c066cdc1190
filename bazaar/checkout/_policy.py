"""
Checkout policy — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


DEFAULT_DUPLICATE_WINDOW = timedelta(seconds=15)


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Checkout policy configuration.

    Chain with_* methods to configure.

    Example:
        policy = (
            Policy()
            .with_duplicate_window(seconds=30)
            .with_deadline(seconds=5)
        )

    duplicate_window: trailing interval in which an order of this user with
        the same total is returned instead of placing a new one.
        None disables the check.
    deadline: upper bound for the transactional part. When exceeded the
        transaction is cancelled and rolled back.

    Note: Each method returns a new Policy.
    """

    duplicate_window: timedelta | None = DEFAULT_DUPLICATE_WINDOW
    deadline: timedelta | None = None

    def with_duplicate_window(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Set the duplicate-order window.

        Example:
            .with_duplicate_window(seconds=15)
            .with_duplicate_window(delta=timedelta(minutes=1))
        """
        window = delta if delta is not None else timedelta(seconds=seconds or 0)
        return Policy(
            duplicate_window=window if window.total_seconds() > 0 else None,
            deadline=self.deadline,
        )

    def without_duplicate_check(self) -> Policy:
        return Policy(duplicate_window=None, deadline=self.deadline)

    def with_deadline(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Bound the transactional part of a checkout.

        Example:
            .with_deadline(seconds=5)
        """
        deadline = delta if delta is not None else timedelta(seconds=seconds or 0)
        return Policy(
            duplicate_window=self.duplicate_window,
            deadline=deadline if deadline.total_seconds() > 0 else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "DEFAULT_DUPLICATE_WINDOW",
    "Policy",
)
