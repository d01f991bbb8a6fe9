"""Priority ordering for roadmap items.

Linear priorities are small integers where 1 is the most urgent. Zero and a
missing value both mean "no priority" and sort after every prioritized item.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import cmp_to_key
from typing import TypeVar

T = TypeVar("T")


def effective_priority(priority: int | None) -> int | None:
    """Return the priority if it counts for ordering, else None."""
    if priority is not None and priority > 0:
        return priority
    return None


def compare_priority(a: int | None, b: int | None) -> int:
    """Three-way comparison of two optional priorities."""
    a_eff = effective_priority(a)
    b_eff = effective_priority(b)
    if a_eff is not None and b_eff is not None:
        return a_eff - b_eff
    if a_eff is not None:
        return -1
    if b_eff is not None:
        return 1
    return 0


def sort_by_priority(items: Iterable[T], key: Callable[[T], int | None]) -> list[T]:
    """Sort items by priority.

    ``sorted`` is stable, so items that compare equal (including all items
    without an effective priority) keep their input order.
    """
    return sorted(items, key=cmp_to_key(lambda a, b: compare_priority(key(a), key(b))))
