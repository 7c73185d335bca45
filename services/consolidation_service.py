"""
Entity consolidation: merge per-source records into one item per product.

Items are keyed by SKU, falling back to Barcode for rows without a SKU.
Both kinds share one mapping (ItemKey), so barcode-only rows are looked up
in constant time. A barcode-only row never merges into a SKU-keyed item;
those overlaps are reported later by the cross-item conflict pass.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Optional
import structlog

from models.reconciliation import (
    ConsolidatedItem,
    ItemKey,
    RuleGroup,
    RunConfiguration,
    SourceRecord,
)
from utils.text_utils import DEFAULT_PRODUCT_TITLE, clean_value, is_valid_product_title

logger = structlog.get_logger(__name__)


@dataclass
class _ItemBuilder:
    """Mutable accumulator used only while folding records into one item."""
    primary_sku: str
    primary_barcode: str
    primary_sku_source: str = ""
    rule_group: RuleGroup = RuleGroup.DEFAULT
    sources: dict[str, SourceRecord] = field(default_factory=dict)

    def add(self, record: SourceRecord, config: RunConfiguration) -> None:
        # First record per source wins; later rows of the same source are ignored.
        if record.source_name not in self.sources:
            self.sources[record.source_name] = record

        if (
            not self.primary_sku_source
            and self.primary_sku
            and record.raw_sku.lower() == self.primary_sku.lower()
        ):
            self.primary_sku_source = record.source_name

        # Only location sheets decide the group; unlisted sheets never do.
        if config.is_location(record.source_name) and config.preset.is_special_location(record.source_name):
            self.rule_group = RuleGroup.SPECIAL

    def build(self, config: RunConfiguration) -> ConsolidatedItem:
        item = ConsolidatedItem(
            primary_sku=self.primary_sku,
            primary_barcode=self.primary_barcode,
            primary_sku_source=self.primary_sku_source,
            sources_by_name=MappingProxyType(dict(self.sources)),
            rule_group=self.rule_group,
        )
        return replace(item, consolidated_product_name=resolve_product_name(item, config))


def resolve_product_name(item: ConsolidatedItem, config: RunConfiguration) -> str:
    """
    Pick the product title for an item.

    Order of preference:
        1. The source that first supplied the primary SKU
        2. Any source whose SKU equals the primary SKU
        3. Any location source, in configured order
        4. The longest title among unlisted sources
        5. DEFAULT_PRODUCT_TITLE

    Args:
        item: Item with all sources merged
        config: Run configuration (source order)

    Returns:
        A valid title, or the default title
    """
    if item.primary_sku_source:
        record = item.record_for(item.primary_sku_source)
        if record is not None and is_valid_product_title(record.raw_product_name):
            return clean_value(record.raw_product_name)

    if item.primary_sku:
        for record in item.sources_by_name.values():
            if record.raw_sku.lower() == item.primary_sku.lower() and is_valid_product_title(record.raw_product_name):
                return clean_value(record.raw_product_name)

    for name in config.location_source_names:
        record = item.record_for(name)
        if record is not None and is_valid_product_title(record.raw_product_name):
            return clean_value(record.raw_product_name)

    best = ""
    for name in config.unlisted_source_names:
        record = item.record_for(name)
        if record is not None and is_valid_product_title(record.raw_product_name):
            title = clean_value(record.raw_product_name)
            if len(title) > len(best):
                best = title
    if best:
        return best

    logger.debug("product_title_defaulted", item=item.display_id, sources=list(item.sources_by_name))
    return DEFAULT_PRODUCT_TITLE


def consolidate(
    sources: Iterable[tuple[str, list[SourceRecord]]],
    config: RunConfiguration,
) -> list[ConsolidatedItem]:
    """
    Fold per-source records into consolidated items.

    Args:
        sources: (source name, records) pairs; locations first, then unlisted,
                 each in configured order
        config: Run configuration

    Returns:
        Items sorted by primary SKU, then primary barcode (case-insensitive)
    """
    builders: dict[ItemKey, _ItemBuilder] = {}
    merged = 0

    for _, records in sources:
        for record in records:
            key = ItemKey.for_record(record)
            if key is None:
                continue

            builder: Optional[_ItemBuilder] = builders.get(key)
            if builder is None:
                builder = _ItemBuilder(
                    primary_sku=record.raw_sku,
                    primary_barcode=record.raw_barcode,
                )
                builders[key] = builder
            else:
                merged += 1
            builder.add(record, config)

    items = [builder.build(config) for builder in builders.values()]
    items.sort(key=lambda i: (i.primary_sku.lower(), i.primary_barcode.lower()))

    logger.info(
        "items_consolidated",
        items=len(items),
        merged_records=merged,
        barcode_keyed=sum(1 for i in items if not i.primary_sku)
    )
    return items
