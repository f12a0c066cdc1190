"""
Store error — shared by every SQLAlchemy-backed store.

Stores never raise: each method returns ``Result[..., StoreError]`` and keeps
the original exception as ``cause`` for logging.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


__all__ = ("StoreError",)
