"""
Conflict detection over consolidated items.

Two kinds of checks:
- Cross-item: a barcode held by two or more items, and the stricter case
  where those items have different SKUs (a critical conflict).
- Per-item: merged sources disagreeing on SKU or Barcode, rows duplicated
  inside one source, and barcodes too short to be real.

Every finding adds a ConflictCode and a remark; nothing is ever dropped.
"""

from collections import defaultdict
from dataclasses import replace
from typing import Optional
import structlog

from models.reconciliation import ConflictCode, ConsolidatedItem, SourceRecord
from utils.text_utils import comparison_key, is_short_barcode

logger = structlog.get_logger(__name__)

NO_SKU_LABEL = "(no SKU)"


def group_by_barcode(items: list[ConsolidatedItem]) -> dict[str, list[int]]:
    """
    Index items by case-folded primary barcode.

    Placeholder and empty barcodes are not grouped.

    Returns:
        Barcode key -> positions in `items`, in item order
    """
    groups: dict[str, list[int]] = defaultdict(list)
    for position, item in enumerate(items):
        key = comparison_key(item.primary_barcode)
        if key is not None:
            groups[key].append(position)
    return groups


def detect_cross_item_conflicts(
    items: list[ConsolidatedItem],
) -> list[tuple[set[ConflictCode], list[str]]]:
    """
    Find barcodes shared by more than one item.

    Args:
        items: All consolidated items of the run

    Returns:
        (codes, remarks) per item, aligned with `items`
    """
    findings: list[tuple[set[ConflictCode], list[str]]] = [(set(), []) for _ in items]

    for barcode_key, positions in group_by_barcode(items).items():
        if len(positions) < 2:
            continue

        distinct_skus = {
            items[p].primary_sku.lower() for p in positions if items[p].primary_sku
        }
        across_skus = len(distinct_skus) > 1

        logger.info(
            "barcode_conflict_found",
            barcode=barcode_key,
            items=len(positions),
            distinct_skus=len(distinct_skus),
            critical=across_skus
        )

        for position in positions:
            item = items[position]
            codes, remarks = findings[position]
            others = [items[p] for p in positions if p != position]

            codes.add(ConflictCode.DUPLICATE_BARCODE_ACROSS_ITEMS)
            other_ids = ", ".join(o.primary_sku or NO_SKU_LABEL for o in others)
            remarks.append(f"Barcode {item.primary_barcode} shared with other items: {other_ids}")

            if across_skus:
                codes.add(ConflictCode.DUPLICATE_BARCODE_ACROSS_SKUS)
                other_skus = ", ".join(
                    o.primary_sku for o in others
                    if o.primary_sku and o.primary_sku.lower() != item.primary_sku.lower()
                )
                remarks.append(
                    f"CRITICAL: Barcode {item.primary_barcode} shared with other SKU(s): {other_skus}"
                )

    return findings


def _first_source_per_value(values: list[tuple[str, str]]) -> dict[str, str]:
    """Map each distinct non-empty value to the first source that had it."""
    first: dict[str, str] = {}
    for source, value in values:
        if value and value not in first:
            first[value] = source
    return first


def _duplicate_reason(source_name: str, record: SourceRecord) -> Optional[str]:
    if not record.is_duplicate_in_source:
        return None
    reason = f"Duplicate in '{source_name}'"
    if record.is_sku_duplicate_in_source and record.is_barcode_duplicate_in_source:
        return (
            f"{reason} - SKU '{record.raw_sku}' and Barcode '{record.raw_barcode}' "
            f"appear multiple times in this source"
        )
    if record.is_sku_duplicate_in_source:
        return f"{reason} - SKU '{record.raw_sku}' appears multiple times in this source"
    if record.is_barcode_duplicate_in_source:
        return f"{reason} - Barcode '{record.raw_barcode}' appears multiple times in this source"
    return reason


def detect_item_conflicts(item: ConsolidatedItem) -> tuple[set[ConflictCode], list[str]]:
    """
    Internal consistency checks for one item.

    Returns:
        (codes, remarks) in display order: SKU inconsistency, barcode
        inconsistency (each followed by a primary-value mismatch, if any),
        in-source duplicates, short barcodes
    """
    codes: set[ConflictCode] = set()
    remarks: list[str] = []
    sources = list(item.sources_by_name.items())

    skus = _first_source_per_value([(name, r.raw_sku) for name, r in sources])
    if len(skus) > 1:
        codes.add(ConflictCode.INCONSISTENT_SKU)
        detail = " vs ".join(f"{sku}({source})" for sku, source in skus.items())
        remarks.append(f"Different SKUs across sources: {detail}")
        if item.primary_sku and item.primary_sku not in skus:
            remarks.append(f"Primary SKU '{item.primary_sku}' doesn't match other sources")

    barcodes = _first_source_per_value([(name, r.raw_barcode) for name, r in sources])
    if len(barcodes) > 1:
        codes.add(ConflictCode.INCONSISTENT_BARCODE)
        detail = " vs ".join(f"{barcode}({source})" for barcode, source in barcodes.items())
        remarks.append(f"Different barcodes across sources: {detail}")
        if item.primary_barcode and item.primary_barcode not in barcodes:
            remarks.append(f"Primary barcode '{item.primary_barcode}' doesn't match other sources")

    duplicate_reasons = [
        reason for reason in (_duplicate_reason(name, r) for name, r in sources) if reason
    ]
    if duplicate_reasons:
        codes.add(ConflictCode.FILE_DUPLICATE)
        remarks.extend(duplicate_reasons)

    short = [
        (name, r.raw_barcode) for name, r in sources
        if r.has_short_barcode or is_short_barcode(r.raw_barcode)
    ]
    short_values = {barcode for _, barcode in short}
    if is_short_barcode(item.primary_barcode) and item.primary_barcode not in short_values:
        short.append(("Primary", item.primary_barcode))
    if short:
        codes.add(ConflictCode.SHORT_BARCODE)
        detail = ", ".join(f"{source}('{barcode}')" for source, barcode in short)
        remarks.append(f"Short barcodes (<3 chars) in: {detail}")

    return codes, remarks


def detect_conflicts(items: list[ConsolidatedItem]) -> list[ConsolidatedItem]:
    """
    Run the cross-item and per-item checks over every item.

    Args:
        items: Consolidated items (not modified)

    Returns:
        New item snapshots carrying conflict codes and remarks, same order
    """
    cross_item = detect_cross_item_conflicts(items)
    result = []

    for item, (cross_codes, cross_remarks) in zip(items, cross_item):
        own_codes, own_remarks = detect_item_conflicts(item)
        result.append(replace(
            item,
            conflict_codes=frozenset(item.conflict_codes | cross_codes | own_codes),
            remarks=(*item.remarks, *cross_remarks, *own_remarks),
        ))

    logger.info(
        "conflicts_detected",
        items=len(result),
        items_with_conflicts=sum(1 for i in result if i.conflict_codes),
        critical=sum(
            1 for i in result
            if ConflictCode.DUPLICATE_BARCODE_ACROSS_SKUS in i.conflict_codes
        )
    )
    return result
