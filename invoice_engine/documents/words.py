"""
Amount in words, Indian numbering (crore / lakh / thousand / hundred).
Only the integer part is spelled out.
"""

from typing import Any

from invoice_engine.normalization.amounts import to_number

UNITS = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
)
TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def _two_digits(n: int) -> str:
    if n < 20:
        return UNITS[n]
    return f"{TENS[n // 10]} {UNITS[n % 10]}".strip()


def _three_digits(n: int) -> str:
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(f"{UNITS[hundreds]} Hundred")
    if rest:
        parts.append(_two_digits(rest))
    return " ".join(parts)


def _integer_words(n: int) -> str:
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, hundred = divmod(n, 1000)

    parts = []
    if crore:
        # crores above 99 are themselves spelled in Indian units
        parts.append(f"{_integer_words(crore)} Crore")
    if lakh:
        parts.append(f"{_two_digits(lakh)} Lakh")
    if thousand:
        parts.append(f"{_two_digits(thousand)} Thousand")
    if hundred:
        parts.append(_three_digits(hundred))
    return " ".join(parts)


def amount_in_words(amount: Any, currency_word: str = "Rupees") -> str:
    """
    Spell out the integer part of ``amount``.

    Example:
        >>> amount_in_words(120000)
        'One Lakh Twenty Thousand Rupees Only'
        >>> amount_in_words("abc")
        'Zero Rupees Only'
    """
    n = int(abs(to_number(amount, 0)))
    if n == 0:
        return f"Zero {currency_word} Only"
    return f"{_integer_words(n)} {currency_word} Only"
