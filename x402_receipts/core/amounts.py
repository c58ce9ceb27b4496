"""
Integer amount arithmetic.

Receipt amounts are decimal strings in the token's base units (for USDC,
millionths of a dollar). They are summed as Python ints so totals never
lose precision.
"""

import re
from typing import Iterable, Union

_DECIMAL_LITERAL = re.compile(r"[+-]?[0-9]+")
# Prefixed literals take no sign
_PREFIXED_LITERAL = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")

Amount = Union[str, int, float]


class AmountParseError(ValueError):
    """Raised when an amount is not an integer literal."""
    def __init__(self, value: object):
        super().__init__(f"Invalid amount {value!r}: expected an integer base-unit string")
        self.value = value


def parse_amount(value: Amount) -> int:
    """Parse a base-unit amount.

    Strings may be decimal, or unsigned ``0x``/``0o``/``0b`` literals, with
    surrounding whitespace; a blank string counts as 0. JSON numbers are
    accepted when they hold an integral value. Fractions, exponents and
    digit separators are rejected.

    Args:
        value: Amount as stored on a receipt

    Returns:
        The amount as an int

    Raises:
        AmountParseError: If the value is not an integer
    """
    if isinstance(value, bool):
        raise AmountParseError(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise AmountParseError(value)
        return int(value)
    if not isinstance(value, str):
        raise AmountParseError(value)

    text = value.strip()
    if not text:
        return 0
    if _DECIMAL_LITERAL.fullmatch(text):
        return int(text)
    if _PREFIXED_LITERAL.fullmatch(text):
        return int(text, 0)
    raise AmountParseError(value)


def sum_amounts(values: Iterable[Amount]) -> int:
    """Sum base-unit amounts, 0 for no values."""
    return sum((parse_amount(value) for value in values), 0)
