"""Numeric-aware structural equality over JSON values, plus copy and text helpers.

``1`` and ``1.0`` (and ``Decimal("1.00")``) are the same number; ``True`` is
a boolean, never the number ``1``.  This is the only equality used by
``test`` operations and by the diff engine.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Literal

JsonKind = Literal["null", "boolean", "number", "string", "array", "object"]

CONTAINER_KINDS = ("array", "object")


def json_kind(value: Any) -> JsonKind:
    """Classify *value* into one of the six JSON node kinds."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def is_container(value: Any) -> bool:
    return isinstance(value, (list, dict))


def _number_equals(a: int | float | Decimal, b: int | float | Decimal) -> bool:
    # Python compares int, float and Decimal by exact mathematical value.
    if a != a and b != b:
        # NaN has no JSON representation; keep the relation reflexive anyway.
        return True
    return a == b


def json_equivalent(a: Any, b: Any) -> bool:
    """Return ``True`` if *a* and *b* are equivalent JSON values.

    Values that are not JSON (including the pointer ``MISSING`` sentinel)
    are equivalent only to themselves.
    """
    if a is b:
        return True
    try:
        kind_a = json_kind(a)
        kind_b = json_kind(b)
    except TypeError:
        return False
    if kind_a != kind_b:
        return False
    if kind_a == "number":
        return _number_equals(a, b)
    if kind_a == "array":
        if len(a) != len(b):
            return False
        return all(json_equivalent(x, y) for x, y in zip(a, b))
    if kind_a == "object":
        if len(a) != len(b) or a.keys() != b.keys():
            return False
        return all(json_equivalent(a[key], b[key]) for key in a)
    return a == b


def copy_json(value: Any) -> Any:
    """Return a copy of the JSON tree *value*.

    Unlike :func:`copy.deepcopy` this does not preserve sharing: a list or
    dict reachable at two positions is copied twice, so the copies can be
    patched independently.
    """
    if isinstance(value, dict):
        return {key: copy_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [copy_json(item) for item in value]
    return value


def _encode_number(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_json(value: Any, **kwargs: Any) -> str:
    """:func:`json.dumps` that writes :class:`~decimal.Decimal` values as numbers."""
    return json.dumps(value, default=_encode_number, **kwargs)


__all__ = [
    "CONTAINER_KINDS",
    "JsonKind",
    "copy_json",
    "dump_json",
    "is_container",
    "json_equivalent",
    "json_kind",
]
