"""
Data normalization and cleaning functions.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Arabic-Indic digits plus the Arabic decimal and thousands marks
_ARABIC_INDIC = str.maketrans("٠١٢٣٤٥٦٧٨٩٫٬", "0123456789.,")

_FRACTION = re.compile(r'(.*?)[.,]([0-9]{1,2})')
_GROUPING = re.compile(r'[.,\s]')
_NUMERAL = re.compile(r'[0-9٠-٩]')


def transliterate_digits(value: str) -> str:
    """Replace Arabic-Indic digits with their Latin equivalents."""
    return value.translate(_ARABIC_INDIC)


def contains_numeral(value: str) -> bool:
    """True if the text holds at least one Latin or Arabic-Indic digit."""
    return bool(_NUMERAL.search(value or ""))


def normalize_money(value: str) -> Optional[Decimal]:
    """
    Normalize a captured numeric span into a Decimal.

    A ``.`` or ``,`` followed by exactly one or two digits at the very end of
    the span is the fractional separator. Every other ``.``, ``,`` or
    whitespace is a thousands separator and is discarded.

    Args:
        value: Raw numeric span, Latin or Arabic-Indic digits

    Returns:
        Decimal value, or None if the span holds no parsable number
    """
    if not value or not value.strip():
        return None

    cleaned = transliterate_digits(value.strip())

    match = _FRACTION.fullmatch(cleaned)
    if match:
        integer_part, fraction = match.group(1), match.group(2)
    else:
        integer_part, fraction = cleaned, ""

    digits = _GROUPING.sub('', integer_part)
    if not re.fullmatch(r'[0-9]+', digits):
        logger.debug(f"Could not extract numeric value from: {value!r}")
        return None

    try:
        amount = Decimal(f"{digits}.{fraction}" if fraction else digits)
    except InvalidOperation:
        logger.debug(f"Could not parse amount: {value!r}")
        return None

    if not amount.is_finite():
        return None
    return amount


def normalize_text(value: str) -> str:
    """
    Normalize text by trimming and cleaning.

    Args:
        value: Raw text string

    Returns:
        Cleaned text string
    """
    if not value:
        return ""

    # Remove extra whitespace
    cleaned = re.sub(r'\s+', ' ', value.strip())

    return cleaned


def strip_leading_punctuation(value: str) -> str:
    """Drop any leading characters that are not letters or digits."""
    return re.sub(r'^[\W_]+', '', value or "").strip()
