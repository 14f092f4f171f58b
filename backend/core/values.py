"""
Cell Value Coercion

Records are loosely typed mappings. Every consumer parses cells through
these helpers so that "is this numeric" and "is this a date" are decided
in exactly one place.
"""

import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional

import numpy as np

Record = Mapping[str, Any]

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%Y-%m",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
)


def to_number(value: Any) -> Optional[float]:
    """
    Parse a cell as a finite float.

    Returns None for nulls, booleans, blank or unparsable strings and
    non-finite numbers.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None

    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a cell as a naive datetime.

    Accepts datetime/date objects, ISO-8601 strings, a handful of common
    day/month layouts and epoch milliseconds.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None

    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, np.datetime64):
        return to_datetime(str(np.datetime_as_string(value, unit="s")))

    if isinstance(value, (int, float, np.integer, np.floating)):
        if not math.isfinite(float(value)):
            return None
        try:
            return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.astimezone(timezone.utc).replace(tzinfo=None) if parsed.tzinfo else parsed
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None


def to_text(value: Any) -> str:
    """Render a cell as a grouping or join key."""
    if value is None:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)) and math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def is_blank(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def numeric_values(records: Iterable[Record], field: str) -> list[float]:
    """Extract the parseable numbers of one field, dropping everything else."""
    values = []
    for row in records:
        number = to_number(row.get(field))
        if number is not None:
            values.append(number)
    return values


def numeric_pairs(
    records: Iterable[Record],
    field1: str,
    field2: str,
) -> tuple[list[float], list[float]]:
    """Extract aligned numbers for rows where both fields parse."""
    xs: list[float] = []
    ys: list[float] = []
    for row in records:
        x = to_number(row.get(field1))
        y = to_number(row.get(field2))
        if x is None or y is None:
            continue
        xs.append(x)
        ys.append(y)
    return xs, ys


def sort_by_date(records: Iterable[Record], date_field: str) -> list[Record]:
    """
    Stable ascending sort on a date field.

    Rows whose date does not parse keep their relative order after all
    dated rows.
    """
    rows = list(records)
    keyed = [(to_datetime(row.get(date_field)), i) for i, row in enumerate(rows)]
    keyed.sort(key=lambda k: (k[0] is None, k[0] or datetime.min, k[1]))
    return [rows[i] for _, i in keyed]
