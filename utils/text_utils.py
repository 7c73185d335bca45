"""
Text utilities for identifier and title handling.

Used by the duplicate detector, consolidator and conflict detector so that
placeholder handling is identical in every stage.
"""

from typing import Optional


DEFAULT_PRODUCT_TITLE = "Default Title"

# Placeholder identifiers: stored verbatim, never compared.
PLACEHOLDER_VALUES = frozenset({
    "no barcode",
    "n/a",
    "na",
    "none",
    "null",
    "no barcode available",
    "missing barcode",
})

INVALID_TITLES = frozenset({
    "null",
    "n/a",
    "na",
    "none",
    DEFAULT_PRODUCT_TITLE.lower(),
})

MIN_TITLE_LENGTH = 2
MIN_BARCODE_LENGTH = 3


def clean_value(value: Optional[str]) -> str:
    """Trim a cell value, mapping None to an empty string."""
    if value is None:
        return ""
    return value.strip()


def is_placeholder_value(value: Optional[str]) -> bool:
    """
    Check whether an identifier is a placeholder rather than a real value.

    Empty values count as placeholders. Matching is case-insensitive:
    - "N/A" -> True
    - "No Barcode" -> True
    - "no scannable barcode" -> True
    - "8801234567890" -> False

    Args:
        value: Raw SKU or barcode

    Returns:
        True if the value must be excluded from comparisons
    """
    if value is None:
        return True

    lowered = value.strip().lower()
    if not lowered:
        return True

    if lowered in PLACEHOLDER_VALUES:
        return True

    return lowered.startswith("no ") and "barcode" in lowered


def is_short_barcode(barcode: Optional[str]) -> bool:
    """True for a real (non-placeholder) barcode shorter than 3 characters."""
    cleaned = clean_value(barcode)
    return bool(cleaned) and not is_placeholder_value(cleaned) and len(cleaned) < MIN_BARCODE_LENGTH


def comparison_key(value: Optional[str]) -> Optional[str]:
    """
    Case-folded comparison key for an identifier.

    Returns:
        Lower-cased trimmed value, or None for placeholders
    """
    if is_placeholder_value(value):
        return None
    return value.strip().lower()


def is_valid_product_title(title: Optional[str]) -> bool:
    """
    Check whether a product title is usable for the report.

    Rejects empty values, one-character titles, "null"-like placeholders
    and the fallback title itself.
    """
    cleaned = clean_value(title)
    if len(cleaned) < MIN_TITLE_LENGTH:
        return False
    return cleaned.lower() not in INVALID_TITLES
