"""Helpers for cyclically ordered sequences (stars of vertices)."""

from collections.abc import Collection, Sequence
from typing import TypeVar

T = TypeVar("T")


def cyclic_shift(items: Sequence[T], start: int) -> list[T]:
    """Rotate a sequence so that it begins at ``start``."""
    if not items:
        return []
    start %= len(items)
    return list(items[start:]) + list(items[:start])


def sort_connected_set(ordered: Sequence[T], subset: Collection[T]) -> list[T]:
    """Arrange a cyclically connected subset in the cyclic order.

    The result starts with the first element of the run. If the run wraps
    around the end of ``ordered`` it starts after the last element outside of
    the subset. When the subset is not connected, the returned run contains
    elements outside of it, which ``is_connected_set`` detects.

    Args:
        ordered: Elements in cyclic order
        subset: Elements to arrange

    Returns:
        ``len(subset)`` consecutive elements of ``ordered``

    Raises:
        ValueError: If no element of the subset occurs in ``ordered``
    """
    members = set(subset)
    if not members:
        return []
    start = next((index for index, item in enumerate(ordered) if item in members), None)
    if start is None:
        raise ValueError("None of the elements occur in the cyclic order")
    if start == 0:
        outside = [index for index, item in enumerate(ordered) if item not in members]
        if outside:
            start = outside[-1] + 1
    return cyclic_shift(ordered, start)[: len(members)]


def is_connected_set(ordered: Sequence[T], subset: Collection[T]) -> bool:
    """Whether ``subset`` forms one consecutive run in the cyclic order."""
    members = set(subset)
    if not members:
        return True
    if not members.issubset(ordered):
        return False
    return set(sort_connected_set(ordered, members)) == members
