"""
Per-source duplicate detection.

Scans the rows of a single source and flags every row whose SKU or Barcode
occurs more than once in that same source. Runs before consolidation so the
flags travel with each SourceRecord.
"""

from collections import Counter
from typing import Iterable
import structlog

from models.reconciliation import SourceRecord, SourceRow
from utils.text_utils import clean_value, comparison_key, is_short_barcode

logger = structlog.get_logger(__name__)


def find_repeated_values(values: Iterable[str]) -> set[str]:
    """
    Return the comparison keys that occur more than once.

    Placeholders and empty values are ignored; matching is case-insensitive.
    """
    counts = Counter(
        key for key in (comparison_key(value) for value in values) if key is not None
    )
    return {key for key, count in counts.items() if count > 1}


def flag_source_duplicates(source_name: str, rows: Iterable[SourceRow]) -> list[SourceRecord]:
    """
    Build SourceRecords for one source with duplicate flags set.

    Rows with neither SKU nor Barcode are dropped (input defect, not an error).

    Args:
        source_name: Name of the source the rows belong to
        rows: Parsed rows in sheet order

    Returns:
        SourceRecords in the original row order
    """
    cleaned = [
        (
            clean_value(row.sku),
            clean_value(row.barcode),
            clean_value(row.product_name),
            clean_value(row.remark),
        )
        for row in rows
    ]

    kept = [values for values in cleaned if values[0] or values[1]]
    skipped = len(cleaned) - len(kept)
    if skipped:
        logger.debug(
            "rows_skipped_no_identifiers",
            source=source_name,
            skipped=skipped
        )

    duplicate_skus = find_repeated_values(sku for sku, _, _, _ in kept)
    duplicate_barcodes = find_repeated_values(barcode for _, barcode, _, _ in kept)

    records = []
    for sku, barcode, product_name, remark in kept:
        sku_dup = comparison_key(sku) in duplicate_skus
        barcode_dup = comparison_key(barcode) in duplicate_barcodes
        records.append(SourceRecord(
            source_name=source_name,
            raw_sku=sku,
            raw_barcode=barcode,
            raw_product_name=product_name,
            remark=remark,
            is_duplicate_in_source=sku_dup or barcode_dup,
            is_sku_duplicate_in_source=sku_dup,
            is_barcode_duplicate_in_source=barcode_dup,
            has_short_barcode=is_short_barcode(barcode),
        ))

    if duplicate_skus or duplicate_barcodes:
        logger.info(
            "source_duplicates_found",
            source=source_name,
            duplicate_skus=sorted(duplicate_skus),
            duplicate_barcodes=sorted(duplicate_barcodes),
            flagged_rows=sum(1 for r in records if r.is_duplicate_in_source)
        )

    return records
