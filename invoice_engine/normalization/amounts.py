"""
Amount Normalization Module.

Coerces loosely-typed amount values (numbers, numeric strings, strings
carrying currency symbols or thousand separators) into ``Decimal`` and
rounds money to two places, half-up. Coercion never raises: anything
that is not a finite number, or is too large to be an amount, becomes
the caller's default.
"""

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from invoice_engine.utils.logger import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

# amounts stay below 10**18 so cent quantizing fits the default 28-digit context
MAX_AMOUNT_DIGITS = 18


class AmountNormalizer:
    """
    Normalizes amount strings to a plain numeric form.

    Handles currency symbols and codes, thousand separators and the
    European comma-decimal format.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("₹ 1,234.50")
        '1234.50'
        >>> normalizer.normalize("1.234,56")
        '1234.56'
        >>> normalizer.normalize("n/a") is None
        True
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '฿', '₫', '₴', '₦']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'AED', 'SGD', 'THB', 'AUD', 'CAD']

    # no word boundaries: whitespace is already gone ("INR12,000")
    _CODES_RE = re.compile('|'.join(CURRENCY_CODES), re.IGNORECASE)
    _NUMBER_RE = re.compile(r'^-?(\d+\.?\d*|\.\d+)$')

    def normalize(self, amount_str: str) -> Optional[str]:
        """
        Normalize an amount string.

        Args:
            amount_str: Input amount string (e.g., "₹1,234.56").

        Returns:
            Plain numeric string (e.g., "1234.56") or None.
        """
        if not amount_str:
            return None

        cleaned = self._clean_amount_string(amount_str)
        if not cleaned:
            return None

        cleaned = self._handle_european_format(cleaned)
        cleaned = cleaned.replace(',', '')

        if not self._NUMBER_RE.match(cleaned):
            return None
        return cleaned

    def _clean_amount_string(self, amount_str: str) -> str:
        """Strip whitespace, currency symbols and currency codes."""
        amount_str = ''.join(amount_str.split())

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        amount_str = self._CODES_RE.sub('', amount_str)
        return amount_str.strip()

    def _handle_european_format(self, amount_str: str) -> str:
        """
        Convert comma-decimal format to dot-decimal.

        A single comma after the last dot with at most two digits after
        it is treated as the decimal separator.
        """
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '').replace(',', '.')

        return amount_str


_normalizer = AmountNormalizer()


def _within_range(number: Decimal) -> Optional[Decimal]:
    if not number.is_finite() or (number and number.adjusted() >= MAX_AMOUNT_DIGITS):
        logger.debug(f"Amount out of range: {number}")
        return None
    return number


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return _within_range(value)

    if isinstance(value, int):
        return _within_range(Decimal(value))

    if isinstance(value, float):
        return _within_range(Decimal(str(value))) if math.isfinite(value) else None

    if isinstance(value, str):
        normalized = _normalizer.normalize(value)
        if normalized is None:
            return None
        try:
            return _within_range(Decimal(normalized))
        except InvalidOperation:
            return None

    return None


def to_number(value: Any, default: Any = 0) -> Optional[Decimal]:
    """
    Coerce ``value`` to a finite ``Decimal``.

    Args:
        value: Any scalar.
        default: Returned (as Decimal) when ``value`` is missing or not
            numeric. ``None`` is passed through so callers can detect
            absence.

    Returns:
        Decimal value, the default, or None.

    Example:
        >>> to_number("12,000")
        Decimal('12000')
        >>> to_number("abc", 1)
        Decimal('1')
        >>> to_number(float("nan"))
        Decimal('0')
    """
    number = _as_decimal(value)
    if number is not None:
        return number
    if default is None:
        return None
    return _as_decimal(default)


def round2(value: Any) -> Decimal:
    """
    Round to two decimal places, half-up. Non-numeric input, and results
    too large to hold in cents, round to zero.

    Example:
        >>> round2(Decimal("2.675"))
        Decimal('2.68')
        >>> round2(None)
        Decimal('0.00')
    """
    number = to_number(value, ZERO)
    try:
        return number.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.debug(f"Amount too large to round: {number}")
        return ZERO.quantize(CENT)


def money(value: Any) -> Decimal:
    """Non-negative 2-dp money value; negatives clamp to zero."""
    return max(round2(value), ZERO.quantize(CENT))


def percent_of(amount: Any, base: Any) -> Optional[Decimal]:
    """
    ``100 * amount / base`` rounded to 2 dp, or None when ``base`` is zero.

    Example:
        >>> percent_of(1620, 9000)
        Decimal('18.00')
        >>> percent_of(100, 0) is None
        True
    """
    base = to_number(base, ZERO)
    if base == 0:
        return None
    return round2(Decimal(100) * to_number(amount, ZERO) / base)
