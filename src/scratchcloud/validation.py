"""
Value and name helpers for cloud variables.

The cloud servers only accept values that the Scratch VM considers numeric,
which follows JavaScript's ``Number()`` conversion rather than Python's
``float()``. ``is_numeric_string`` mirrors that conversion.
"""

import math
import re
from decimal import Decimal
from typing import Union

CLOUD_PREFIX = "☁ "

# Whitespace stripped by JavaScript's Number(): ASCII whitespace, NBSP, BOM,
# Unicode space separators and the line/paragraph separators.
_JS_WHITESPACE = (
    " \t\n\v\f\r\u00a0\ufeff\u1680\u2000\u2001\u2002\u2003\u2004\u2005"
    "\u2006\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000"
)

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
_INFINITY_RE = re.compile(r"^[+-]?Infinity$")
_RADIX_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")

CloudValue = Union[str, int, float]


def is_numeric_string(value: str) -> bool:
    """Return True when ``Number(value)`` would not be NaN in JavaScript."""
    stripped = value.strip(_JS_WHITESPACE)
    if not stripped:
        return True
    return bool(
        _DECIMAL_RE.match(stripped)
        or _INFINITY_RE.match(stripped)
        or _RADIX_RE.match(stripped)
    )


def normalize_value(value: CloudValue) -> str:
    """Convert a value to the string form sent over the wire."""
    if isinstance(value, bool):
        # bools are ints in Python but never numeric cloud values
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return format_float(value)
    return str(value)


def format_float(value: float) -> str:
    """
    Format a finite float the way JavaScript's ``String(number)`` does.

    Plain notation is used for magnitudes in [1e-6, 1e21), exponent notation
    (``1e+21``, ``1.5e-7``) outside that range.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    # repr gives the shortest digits that round-trip, as JavaScript does
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


def apply_prefix(name: str, enabled: bool = True) -> str:
    """Prepend ``CLOUD_PREFIX`` to ``name`` unless it is already there."""
    if enabled and not name.startswith(CLOUD_PREFIX):
        return f"{CLOUD_PREFIX}{name}"
    return name
