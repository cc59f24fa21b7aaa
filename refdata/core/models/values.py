"""Coercion of loosely-typed table values into Python types.

A missing value (``None``) always coerces to the zero value of its target
type. Any other mismatch raises :class:`FieldDecodeError` naming the field.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date
from typing import TypeVar

from refdata.core.exceptions import FieldDecodeError
from refdata.core.models.schema import Value

T = TypeVar("T")


def _type_error(value: Value, expected: str) -> TypeError:
    return TypeError(f"expected {expected} but found {type(value).__name__}: {value!r}")


def to_str(value: Value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise _type_error(value, "a string")


def to_str_list(value: Value) -> list[str]:
    """Space separated list, e.g. CUSIPs or related tickers."""

    return to_str(value).split()


def to_num(value: Value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _type_error(value, "a number")
    return float(value)


def to_date(value: Value) -> date | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _type_error(value, "a date string")
    if not value:
        return None
    # Some date columns carry a time suffix; only the calendar date matters.
    return date.fromisoformat(value[:10])


def to_required_date(value: Value) -> date:
    day = to_date(value)
    if day is None:
        raise ValueError("date is missing")
    return day


def to_bool(value: Value) -> bool:
    """Y/N flag."""

    if value is None:
        return False
    if value == "Y":
        return True
    if value == "N":
        return False
    raise _type_error(value, "a Y/N string")


def parse_num(text: str) -> float:
    """Parse a CSV cell as a number."""

    return float(text)


def parse_date(text: str) -> date:
    """Parse a CSV cell as a date."""

    return date.fromisoformat(text[:10])


def decode_field(
    values: Sequence[Value],
    index: Mapping[str, int],
    field: str,
    convert: Callable[[Value], T],
    description: str,
) -> T:
    """Convert one named field of a row, naming the field on failure."""

    value = values[index[field]]
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise FieldDecodeError(f"{field} should be {description}: {exc}", field=field, value=value) from exc


def decode_cell(
    row: Sequence[str],
    column_map: Mapping[str, int],
    field: str,
    convert: Callable[[str], T],
    description: str,
) -> T:
    """CSV counterpart of :func:`decode_field`."""

    text = row[column_map[field]]
    try:
        return convert(text)
    except (TypeError, ValueError) as exc:
        raise FieldDecodeError(f"{field} should be {description}: '{text}'", field=field, value=text) from exc


__all__ = [
    "decode_cell",
    "decode_field",
    "parse_date",
    "parse_num",
    "to_bool",
    "to_date",
    "to_num",
    "to_required_date",
    "to_str",
    "to_str_list",
]
