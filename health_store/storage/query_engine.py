# =============================================================================
# health_store/storage/query_engine.py
# In-Memory Sort / Limit / Filter over Entity Arrays
# =============================================================================
"""
Pure query functions shared by every collection and both backends.

Sorting compares values by their JavaScript string coercion, so numeric
fields order as text ("2" > "10" > "1" descending). Stored data written by
the web client was always ordered this way and callers rely on it.

Filter criteria use three operators, represented as a closed set of op
types:

    {"status": "active"}               -> Equals("active")
    {"status": {"$in": ["a", "b"]}}    -> In(("a", "b"))
    {"status": {"$ne": "archived"}}    -> NotEquals("archived")

All criteria are ANDed.
"""

from __future__ import annotations
import json
import math
import unicodedata
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from health_store.errors import InvalidQueryError

Entity = Dict[str, Any]

_MISSING = object()


# =============================================================================
# FILTER OPERATORS
# =============================================================================

@dataclass(frozen=True)
class Equals:
    value: Any


@dataclass(frozen=True)
class In:
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class NotEquals:
    value: Any


FilterOp = Union[Equals, In, NotEquals]


def strict_equals(left: Any, right: Any) -> bool:
    """
    Equality without Python's bool/int coercion.

    True never equals 1, and the missing-field sentinel equals nothing.
    """
    if left is _MISSING or right is _MISSING:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def parse_criteria(criteria: Mapping[str, Any]) -> Dict[str, FilterOp]:
    """
    Convert raw criteria into typed filter operators.

    Args:
        criteria: Mapping of field name to scalar, {"$in": [...]},
                  {"$ne": value}, or an already-typed FilterOp

    Returns:
        Dict of field name to FilterOp

    Raises:
        InvalidQueryError: If an operator value is malformed
    """
    if not isinstance(criteria, Mapping):
        raise InvalidQueryError(
            f"Filter criteria must be a mapping, got {type(criteria).__name__}"
        )

    ops: Dict[str, FilterOp] = {}
    for field, expected in criteria.items():
        if isinstance(expected, (Equals, In, NotEquals)):
            ops[field] = expected
        elif isinstance(expected, Mapping) and "$in" in expected:
            values = expected["$in"]
            if not isinstance(values, (list, tuple, set, frozenset)):
                raise InvalidQueryError(
                    f"$in expects a list of values, got {type(values).__name__}",
                    field=field,
                    operator="$in",
                )
            ops[field] = In(tuple(values))
        elif isinstance(expected, Mapping) and "$ne" in expected:
            ops[field] = NotEquals(expected["$ne"])
        else:
            ops[field] = Equals(expected)
    return ops


def evaluate(op: FilterOp, actual: Any) -> bool:
    """Evaluate one operator against a field value (or the missing sentinel)."""
    if isinstance(op, Equals):
        return strict_equals(actual, op.value)
    if isinstance(op, In):
        return any(strict_equals(actual, candidate) for candidate in op.values)
    if isinstance(op, NotEquals):
        return not strict_equals(actual, op.value)
    raise InvalidQueryError(f"Unsupported filter operator: {op!r}")


def matches(entity: Mapping[str, Any], ops: Mapping[str, FilterOp]) -> bool:
    """True when every operator holds for the entity."""
    return all(
        evaluate(op, entity.get(field, _MISSING))
        for field, op in ops.items()
    )


def filter_entities(
    entities: Iterable[Entity],
    criteria: Mapping[str, Any],
) -> List[Entity]:
    """Keep the entities matching all criteria, preserving order."""
    ops = parse_criteria(criteria)
    return [entity for entity in entities if matches(entity, ops)]


# =============================================================================
# SORT / LIMIT
# =============================================================================

def js_number(value: float) -> str:
    """
    Render a float the way JavaScript's Number.prototype.toString() would.

    Uses the shortest round-trip digits, positional notation for
    1e-6 <= |x| < 1e21 and "1.5e+21" / "1e-7" style exponents otherwise.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k  # position of the decimal point relative to the digits

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


def js_string(value: Any) -> str:
    """Render a value the way JavaScript's String() would."""
    if value is _MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if abs(value) < 10 ** 21:
            return str(value)
        try:
            return js_number(float(value))
        except OverflowError:
            return "Infinity" if value > 0 else "-Infinity"
    if isinstance(value, float):
        return js_number(value)
    if isinstance(value, (list, tuple)):
        return ",".join(
            "" if item is None else js_string(item) for item in value
        )
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


# Root-collation order of ASCII punctuation and symbols (all sort before digits)
_PUNCTUATION_ORDER = "_-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"


def _primary_weight(char: str) -> Tuple[int, int, str]:
    if char.isspace():
        return (0, 0, "")
    position = _PUNCTUATION_ORDER.find(char)
    if position >= 0:
        return (0, 1 + position, "")
    if char.isdigit():
        return (1, 0, char)
    if char.isalpha():
        return (2, 0, char)
    return (0, 100, char)


def collation_key(text: str) -> Tuple[Tuple, Tuple, Tuple, str]:
    """
    Sort key approximating String.prototype.localeCompare (root locale).

    Three levels, compared in order:
      1. base letters, case- and accent-insensitive, with punctuation
         before digits before letters ("a_b" < "a-b" < "a1" < "ab")
      2. accents ("e" < "é" < "f")
      3. case, lowercase first ("a" < "A")
    Exact text breaks any remaining tie.
    """
    primary, secondary, tertiary = [], [], []
    for char in text:
        decomposed = unicodedata.normalize("NFKD", char)
        base = "".join(c for c in decomposed if not unicodedata.combining(c)) or char
        marks = "".join(c for c in decomposed if unicodedata.combining(c))
        primary.extend(_primary_weight(folded) for folded in base.casefold())
        secondary.append(marks)
        tertiary.append(1 if base.isupper() else 0)
    return (tuple(primary), tuple(secondary), tuple(tertiary), text)


def _sort_key(value: Any) -> Tuple[Tuple, Tuple, Tuple, str]:
    return collation_key(js_string(value))


def parse_order_by(order_by: Optional[str]) -> Optional[Tuple[str, bool]]:
    """
    Split an order-by expression into (field, descending).

    Returns None when no ordering is requested.
    """
    if not order_by:
        return None
    if order_by.startswith("-"):
        return order_by[1:], True
    return order_by, False


def sort_entities(entities: Iterable[Entity], order_by: Optional[str]) -> List[Entity]:
    """
    Stable sort by one field, compared as strings.

    Args:
        entities: Entities to sort
        order_by: Field name, prefixed with "-" for descending

    Returns:
        New sorted list (input order kept when order_by is empty)
    """
    items = list(entities)
    parsed = parse_order_by(order_by)
    if parsed is None:
        return items

    field, descending = parsed
    return sorted(
        items,
        key=lambda entity: _sort_key(entity.get(field, _MISSING)),
        reverse=descending,
    )


def apply_limit(entities: List[Entity], limit: Optional[int]) -> List[Entity]:
    """First `limit` entities; None or 0 leaves the list untouched."""
    if not limit:
        return entities
    return entities[:limit]


def run_query(
    entities: Iterable[Entity],
    order_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Entity]:
    """Sort then truncate."""
    return apply_limit(sort_entities(entities, order_by), limit)


def describe_criteria(criteria: Mapping[str, Any]) -> str:
    """Compact criteria rendering for log lines."""
    try:
        return json.dumps(criteria, default=repr, sort_keys=True)
    except (TypeError, ValueError):
        return repr(criteria)
