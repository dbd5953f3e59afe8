"""Structural equality over plain JSON-derived values."""

from collections.abc import Mapping
from typing import Any


def _kind(value: Any) -> str:
    # bool is an int subclass; keep it apart from numbers.
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    if value is None:
        return "null"
    return type(value).__name__


def deep_equal(a: Any, b: Any) -> bool:
    """
    Compare two values for deep structural equality.

    Mappings are equal when they have the same key set and every value is
    deep-equal; key order is irrelevant. A key that exists on only one side
    makes the mappings unequal even if its value is ``None``. Sequences are
    compared element by element. Inputs must be acyclic.

    Args:
        a: First value
        b: Second value

    Returns:
        True if both values have the same kind and structure
    """
    kind = _kind(a)
    if kind != _kind(b):
        return False

    if kind == "mapping":
        if len(a) != len(b):
            return False
        if set(a.keys()) != set(b.keys()):
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    if kind == "sequence":
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    return a == b
