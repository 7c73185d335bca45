"""
Special-prefix SKU preprocessing.

Some rule sets (RULESET_B) expect SKUs on their special location sheets to be
written with a prefix such as "OGF-ABC123". Before comparison those SKUs are
annotated in the remark column and stripped back to the shared SKU so they
can merge with the other sheets.
"""

import re
from dataclasses import replace
from typing import Optional
import structlog

from models.reconciliation import RuleSetPreset, SourceRow
from utils.text_utils import clean_value

logger = structlog.get_logger(__name__)

REMARK_SEPARATOR = "; "


def prefix_remark(sku: str, prefix: str) -> str:
    """
    Remark describing whether a SKU carries the expected prefix.

    "OGF-123" -> "OGF- prefix found."
    "123" -> "WARNING: OGF- prefix missing from SKU."
    """
    if not sku:
        return ""
    if sku.upper().startswith(prefix.upper()):
        return f"{prefix} prefix found."
    return f"WARNING: {prefix} prefix missing from SKU."


def strip_keyword(sku: str, keyword: str) -> str:
    """
    Remove every occurrence of the keyword from a SKU.

    "OGF-123" -> "123"
    "123-ogf" -> "123"
    """
    cleaned = re.sub(re.escape(keyword), "", sku, flags=re.IGNORECASE).strip()
    return re.sub(r"^-|-$", "", cleaned).strip()


def detect_prefix_remark(raw_sku: Optional[str], keyword: str) -> str:
    """
    Remark derived from a raw SKU when the sheet supplied none.

    Distinguishes a proper prefix, the keyword somewhere else in the SKU,
    and a SKU without the keyword at all.
    """
    sku = clean_value(raw_sku)
    if not sku:
        return ""

    upper_keyword = keyword.upper()
    upper_sku = sku.upper()
    has_prefix = (
        upper_sku.startswith(f"{upper_keyword}-")
        or upper_sku.startswith(f"{upper_keyword}_")
        or f"-{upper_keyword}" in upper_sku
        or f"_{upper_keyword}" in upper_sku
    )

    if has_prefix:
        return f"{upper_keyword} prefix found: '{sku}'"
    if upper_keyword in upper_sku:
        return f"{upper_keyword} detected in SKU: '{sku}'"
    return f"WARNING: No {upper_keyword} prefix in SKU: '{sku}'"


def _append_remark(current: str, addition: str) -> str:
    if not addition:
        return current
    if not current:
        return addition
    return f"{current}{REMARK_SEPARATOR}{addition}"


def clean_special_rows(rows: list[SourceRow], preset: RuleSetPreset) -> list[SourceRow]:
    """
    Annotate and strip prefixed SKUs of one special location sheet.

    The remark is written from the original SKU before it is cleaned.
    """
    prefix = preset.special_sku_prefix
    keyword = preset.special_location_keywords[0]
    cleaned_rows = []

    for row in rows:
        sku = clean_value(row.sku)
        remark = _append_remark(clean_value(row.remark), prefix_remark(sku, prefix))
        if sku and keyword.upper() in sku.upper():
            sku = strip_keyword(sku, keyword)
        cleaned_rows.append(replace(row, sku=sku, remark=remark))

    return cleaned_rows


def fill_detected_remarks(rows: list[SourceRow], keyword: str) -> list[SourceRow]:
    """Give rows without a remark one derived from their SKU."""
    return [
        row if clean_value(row.remark) else replace(row, remark=detect_prefix_remark(row.sku, keyword))
        for row in rows
    ]


def preprocess_sources(
    sources: list[tuple[str, list[SourceRow]]],
    preset: RuleSetPreset,
    location_names: tuple[str, ...],
) -> list[tuple[str, list[SourceRow]]]:
    """
    Apply prefix handling to the special sheets of a run.

    Only rule sets with a special SKU prefix are affected. The first location
    source is the reference sheet and is left untouched; other special-named
    location sheets are cleaned; special-named sources still lacking remarks
    get a remark detected from the SKU.

    Args:
        sources: (source name, rows) pairs in ingestion order
        preset: Active rule set preset
        location_names: Location source names in configured order

    Returns:
        New (source name, rows) pairs; input rows are not modified
    """
    if not preset.special_sku_prefix:
        return sources

    keyword = preset.special_location_keywords[0]
    reference = location_names[0] if location_names else None
    processed = []

    for name, rows in sources:
        if not preset.is_special_location(name):
            processed.append((name, rows))
            continue

        if name in location_names and name != reference:
            rows = clean_special_rows(rows, preset)
            logger.info(
                "special_sku_prefix_cleaned",
                source=name,
                prefix=preset.special_sku_prefix,
                rows=len(rows)
            )

        processed.append((name, fill_detected_remarks(rows, keyword)))

    return processed
