"""
Coercion -- forgiving numeric, text, date and field-access helpers.

Responsibility:
    Centralize the permissive input handling used by both engines so the
    zero-default behavior is auditable in one place:

    - ``to_decimal_or_zero``: missing / invalid numbers become ``Decimal("0")``.
    - ``to_number_or_none``: same parsing, but signals "not a number" with None
      so comparisons can exclude instead of treating the value as zero.
    - ``get_field``: dynamic, structural field access over mapping or
      dataclass records.  Missing fields read as None.
    - ``as_text``: stable string form used for grouping keys and substring
      matching.
    - ``parse_instant``: ISO date / datetime parsing for date-range filters.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Failure modes:
    None.  Every helper is total over its input domain.
"""

from __future__ import annotations

import dataclasses
import math
import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

ZERO = Decimal("0")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def to_number_or_none(value: Any) -> Decimal | None:
    """Parse ``value`` as a finite Decimal, or return None.

    Booleans count as 1 / 0.  Floats go through ``str()`` so that 0.1 stays
    0.1 rather than its binary expansion.  Blank strings are not numbers.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def to_decimal_or_zero(value: Any) -> Decimal:
    """Parse ``value`` as a Decimal, defaulting to zero."""
    number = to_number_or_none(value)
    return ZERO if number is None else number


def is_numeric(value: Any) -> bool:
    """True for real numbers (bool excluded)."""
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, Decimal))


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------


def snake_case(name: str) -> str:
    """``requestedDate`` -> ``requested_date``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def get_field(record: Any, name: Any) -> Any:
    """Read a named field from a record, returning None when absent.

    Mapping records are read by key; dataclass records by field name.  A
    camelCase name falls back to its snake_case spelling, so report
    configurations written against the application's JSON field names
    resolve on Python records too.
    """
    if not isinstance(name, str) or not name or name.startswith("_"):
        return None

    candidates = (name,) if snake_case(name) == name else (name, snake_case(name))

    if isinstance(record, Mapping):
        for key in candidates:
            value = record.get(key)
            if value is not None:
                return value
        return None

    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        known = {f.name for f in dataclasses.fields(record)}
        for key in candidates:
            if key in known:
                value = getattr(record, key)
                if value is not None:
                    return value
        return None

    return None


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def as_text(value: Any) -> str:
    """Stable string form of a field value.

    Booleans render as ``true`` / ``false``; integral numbers drop any
    fractional zeros (``50.0`` and ``Decimal("50.00")`` both render ``50``);
    None renders as the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return as_text(value.value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        if value == value.to_integral_value():
            return str(value.to_integral_value())
        return str(value.normalize())
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_instant(value: Any) -> datetime | None:
    """Parse a date-like value into an aware datetime, or None.

    Accepts ``datetime``, ``date`` and ISO-8601 strings.  Naive values are
    read as UTC, so a bare ``YYYY-MM-DD`` is midnight UTC of that day.
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant
