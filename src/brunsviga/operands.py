"""Operand parsing for the algorithm generators.

Integer algorithms accept ints or digit strings. Decimal algorithms accept
strings (with "." or "," as the decimal separator), ints and Decimals, and
need to know how many fractional digits were written, because the decimal
point rule of the machine depends on it.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_DECIMAL_PATTERN = re.compile(r"^([+-]?)(\d*)(?:\.(\d*))?$")


@dataclass(frozen=True)
class DecimalOperand:
    """A parsed decimal operand.

    Attributes:
        normalized: Cleaned input text ("," replaced by ".")
        value: Exact signed value
        negative: Whether the value is below zero
        integer_part: Integer digits without leading zeros ("0" if none)
        fraction_part: Fractional digits exactly as written
        digits: All digits as one integer (12.50 -> 1250)
        decimals: Number of fractional digits written (12.50 -> 2)
    """
    normalized: str
    value: Decimal
    negative: bool
    integer_part: str
    fraction_part: str
    digits: int
    decimals: int


def parse_integer(raw: Any) -> Optional[int]:
    """Coerce an operand to int.

    Returns:
        The integer, or None when the operand is not an integer
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if _INTEGER_PATTERN.match(text):
            return int(text)
    return None


def parse_decimal(raw: Any) -> Optional[DecimalOperand]:
    """Parse a decimal operand.

    Args:
        raw: String, int or Decimal

    Returns:
        DecimalOperand, or None when the operand is not a number
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, Decimal)):
        if isinstance(raw, Decimal) and not raw.is_finite():
            return None
        raw = format(Decimal(raw), "f")
    if not isinstance(raw, str):
        return None

    normalized = raw.replace(",", ".", 1).strip()
    match = _DECIMAL_PATTERN.match(normalized)
    if not match:
        return None

    _sign, integer_digits, fraction_digits = match.groups()
    fraction_digits = fraction_digits or ""
    if not integer_digits and not fraction_digits:
        return None

    value = Decimal(normalized)
    integer_part = integer_digits.lstrip("0") or "0"

    return DecimalOperand(
        normalized=normalized,
        value=value,
        negative=value < 0,
        integer_part=integer_part,
        fraction_part=fraction_digits,
        digits=int(integer_part + fraction_digits),
        decimals=len(fraction_digits),
    )
