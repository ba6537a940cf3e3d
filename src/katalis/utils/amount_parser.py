"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

_SUFFIXES = {
    "k": Decimal("1000"),
    "rb": Decimal("1000"),
    "ribu": Decimal("1000"),
    "jt": Decimal("1000000"),
    "juta": Decimal("1000000"),
    "m": Decimal("1000000"),
    "miliar": Decimal("1000000000"),
}

_SUFFIX_PATTERN = re.compile(r"^(.*?)\s*(" + "|".join(sorted(_SUFFIXES, key=len, reverse=True)) + r")$")


def _normalize_separators(text: str) -> str:
    """Resolve thousands/decimal separators to a plain decimal string.

    Both "1,234,567.89" and the Indonesian "1.234.567,89" are accepted. A
    single separator followed by exactly three digits is a thousands
    separator ("1.500" is fifteen hundred).
    """
    has_dot = "." in text
    has_comma = "," in text

    if has_dot and has_comma:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")

    for sep in (".", ","):
        if sep in text:
            parts = text.split(sep)
            if len(parts) > 2 or len(parts[-1]) == 3:
                return text.replace(sep, "")
            return text.replace(sep, ".")
    return text


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "1500000"
    - "Rp 1.500.000" / "IDR 1,500,000"
    - "1.500.000,50"
    - "500rb", "1.5jt", "2k"
    - "(250.000)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip().lower()

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1].strip()
    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:].strip()

    text = re.sub(r"^(rp\.?|idr)\s*", "", text)

    multiplier = Decimal("1")
    match = _SUFFIX_PATTERN.match(text)
    if match and match.group(1):
        text, multiplier = match.group(1).strip(), _SUFFIXES[match.group(2)]
        # Shorthand uses a decimal separator: "1.5jt", "2,5jt"
        text = text.replace(",", ".")
    else:
        text = _normalize_separators(text.replace(" ", ""))

    try:
        amount = Decimal(text) * multiplier
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    return -amount if is_negative else amount
