"""Field type parser.

Converts textual filter values into the native scalar implied by a
:class:`~crossquery.constants.FieldType`. Every backend compiler parses its
values through :func:`parse` before building native predicates.

Policies:
    - BOOLEAN is permissive: anything but ``"true"`` (any case) is ``False``.
    - DATE tries a fixed, ordered list of layouts; a bare date is widened to midnight.
    - NUMBER cascades int -> float -> Decimal (Decimal when a float would overflow or drop
      digits); exhausting the cascade is a hard error.
    - STRING passes through unchanged.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from .constants import DATE_ONLY_FORMAT, DATE_TIME_FORMATS, FieldType
from .exceptions import ParseError
from .logger import Logger

logger = Logger(__name__)

Number = Union[int, float, Decimal]

_DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATE_TIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


def parse(field_type: FieldType, value: Any) -> Any:
    """Parse ``value`` into the scalar required by ``field_type``.

    Args:
        field_type: Target field type
        value: Raw filter value (usually text)

    Returns:
        ``bool``, ``datetime``, ``int``/``float``/``Decimal`` or ``str``; ``None`` stays ``None``

    Raises:
        ParseError: If a DATE or NUMBER value cannot be converted
    """
    if value is None:
        return None
    field_type = FieldType(field_type)
    if field_type == FieldType.BOOLEAN:
        return parse_boolean(value)
    if field_type == FieldType.DATE:
        return parse_date(value)
    if field_type == FieldType.NUMBER:
        return parse_number(value)
    return value if isinstance(value, str) else str(value)


def parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def parse_date(value: Any) -> datetime:
    """Parse a date or date-time, trying ISO, then the explicit layouts, then ISO date-only."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if _ISO_DATE_TIME_PATTERN.match(text):
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    for fmt in DATE_TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.strptime(text, DATE_ONLY_FORMAT)
    except ValueError:
        pass

    logger.error(
        "Failed to parse date value: %s. Supported formats: ISO (yyyy-MM-dd, yyyy-MM-ddTHH:mm:ss), "
        "yyyy-MM-dd HH:mm:ss, dd-MM-yyyy HH:mm:ss, dd/MM/yyyy HH:mm:ss",
        text,
    )
    raise ParseError("Cannot parse date", value=text, field_type=FieldType.DATE.value)


def parse_number(value: Any) -> Number:
    """Parse a number, choosing the integer or floating branch on the presence of a decimal point."""
    if isinstance(value, bool):
        raise ParseError("Cannot parse number from a boolean", value=value, field_type=FieldType.NUMBER.value)
    if isinstance(value, (int, float, Decimal)):
        return value

    text = str(value).strip()
    if "." not in text:
        try:
            return int(text)
        except ValueError:
            pass
    try:
        number = float(text)
    except ValueError:
        number = None
    try:
        decimal = Decimal(text)
    except InvalidOperation:
        if number is not None:
            return number
        logger.warning("Failed to parse number value: %s", text)
        raise ParseError("Cannot parse number", value=text, field_type=FieldType.NUMBER.value) from None
    # A float is kept only when it represents the text exactly (no overflow, no lost digits)
    if number is not None:
        if math.isfinite(number) and Decimal(repr(number)) == decimal:
            return number
        if not math.isfinite(number) and not decimal.is_finite():
            return number
    return decimal


def is_date_without_time(value: Any) -> bool:
    """True when ``value`` is exactly a ``YYYY-MM-DD`` string (no time component) or a bare ``date``."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return True
    return isinstance(value, str) and len(value) == 10 and bool(_DATE_ONLY_PATTERN.match(value))
