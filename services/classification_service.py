"""
Rule classification: final status and reasons for each consolidated item.

Status precedence (highest first):
    CRITICAL_DUPLICATE_BARCODE -> NO_DATA -> RULE_VIOLATION -> DATA_ISSUES -> GOOD

Presence rules depend on the item's rule group. SPECIAL items are judged
against the special locations and the counterpart unlisted sheet, DEFAULT
items against the remaining locations and unlisted sheets.
"""

from dataclasses import dataclass, replace
import structlog

from models.reconciliation import (
    ConflictCode,
    ConsolidatedItem,
    FinalStatus,
    RuleGroup,
    RunConfiguration,
)

logger = structlog.get_logger(__name__)

# Conflict codes that count as data-quality issues. Shared-barcode tags stay on
# the item with their remarks but do not change its status (CRITICAL aside).
DATA_ISSUE_CODES = frozenset(ConflictCode) - {
    ConflictCode.DUPLICATE_BARCODE_ACROSS_SKUS,
    ConflictCode.DUPLICATE_BARCODE_ACROSS_ITEMS,
}


@dataclass(frozen=True)
class Presence:
    """Where an item was found, in configured source order."""
    locations: tuple[str, ...]
    unlisted: tuple[str, ...]
    missing_locations: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.locations and not self.unlisted


def presence_of(item: ConsolidatedItem, config: RunConfiguration) -> Presence:
    """Compute the item's presence across all configured sources."""
    return Presence(
        locations=tuple(n for n in config.location_source_names if item.is_present_in(n)),
        unlisted=tuple(n for n in config.unlisted_source_names if item.is_present_in(n)),
        missing_locations=tuple(n for n in config.location_source_names if not item.is_present_in(n)),
    )


def relevant_location_names(item: ConsolidatedItem, config: RunConfiguration) -> tuple[str, ...]:
    """Locations the item's presence rules are checked against."""
    if item.rule_group == RuleGroup.SPECIAL:
        return config.special_location_names
    return config.default_location_names


def relevant_unlisted_names(item: ConsolidatedItem, config: RunConfiguration) -> tuple[str, ...]:
    """Unlisted sheets that pair with the item's relevant locations."""
    if item.rule_group == RuleGroup.SPECIAL:
        counterpart = config.counterpart_unlisted_name
        return (counterpart,) if counterpart else ()
    return config.default_unlisted_names


def in_any_relevant_unlisted(item: ConsolidatedItem, config: RunConfiguration) -> bool:
    """
    Report flag: item is listed in an unlisted sheet that applies to it.

    False unless the item is present in at least one relevant location.
    """
    if not any(item.is_present_in(n) for n in relevant_location_names(item, config)):
        return False
    return any(item.is_present_in(n) for n in relevant_unlisted_names(item, config))


def _special_pair_reason(item: ConsolidatedItem, config: RunConfiguration) -> list[str]:
    """Special location and its counterpart unlisted sheet both list the item."""
    counterpart = config.counterpart_unlisted_name
    if counterpart is None or not item.is_present_in(counterpart):
        return []
    present = [n for n in config.special_location_names if item.is_present_in(n)]
    if not present:
        return []
    label = config.preset.label
    return [f"{label} item should not appear in both {', '.join(present)} and {counterpart}"]


def _default_pair_reason(item: ConsolidatedItem, config: RunConfiguration) -> list[str]:
    """A default unlisted sheet lists the item while a default location stocks it."""
    if not any(item.is_present_in(n) for n in config.default_unlisted_names):
        return []
    preset = config.preset
    if preset.default_unlisted_checks_all_locations:
        locations = config.location_source_names
    else:
        locations = config.default_location_names
    present = [n for n in locations if item.is_present_in(n)]
    if not present:
        return []
    return [f"Non-{preset.label} unlisted item should not appear in locations: {', '.join(present)}"]


def _missing_location_reason(item: ConsolidatedItem, config: RunConfiguration) -> list[str]:
    """Stocked in some relevant locations but missing from others without an unlisted entry."""
    relevant = relevant_location_names(item, config)
    present = [n for n in relevant if item.is_present_in(n)]
    missing = [n for n in relevant if not item.is_present_in(n)]
    if not present or not missing:
        return []

    counterpart = config.counterpart_unlisted_name
    in_counterpart = counterpart is not None and item.is_present_in(counterpart)
    in_default_unlisted = any(item.is_present_in(n) for n in config.default_unlisted_names)

    unjustified = []
    for name in missing:
        if config.preset.is_special_location(name):
            explained = in_counterpart
        else:
            explained = in_default_unlisted
        if not explained:
            unjustified.append(name)

    if not unjustified:
        return []
    return [f"Item missing from locations: {', '.join(unjustified)}"]


def _orphan_reason(item: ConsolidatedItem, config: RunConfiguration) -> list[str]:
    """Item is in neither its relevant locations nor its relevant unlisted sheets."""
    preset = config.preset
    label = preset.label

    if item.rule_group == RuleGroup.SPECIAL:
        in_special = any(item.is_present_in(n) for n in config.special_location_names)
        counterpart = config.counterpart_unlisted_name
        in_counterpart = counterpart is not None and item.is_present_in(counterpart)
        if not in_special and not in_counterpart:
            return [f"{label} item missing from both {label} location and {label} unlisted"]
        return []

    if any(item.is_present_in(n) for n in config.location_source_names):
        return []
    if preset.default_orphan_checks_all_unlisted:
        if any(item.is_present_in(n) for n in config.unlisted_source_names):
            return []
        return [f"Non-{label} item missing from all locations and all unlisted sources"]
    if any(item.is_present_in(n) for n in config.default_unlisted_names):
        return []
    return [f"Non-{label} item missing from all locations and non-{label} unlisted sources"]


def find_rule_violations(item: ConsolidatedItem, config: RunConfiguration) -> list[str]:
    """
    Evaluate the presence rules for one item.

    Checks, in order:
        A. the item's own location group and its paired unlisted sheet both list it
        B. the other group's unlisted sheet lists it while that group stocks it
        C. missing from a relevant location without a matching unlisted entry
        D. orphan: absent from its relevant locations and unlisted sheets

    Returns:
        One reason string per triggered condition; empty if none
    """
    if item.rule_group == RuleGroup.SPECIAL:
        own_pair, other_pair = _special_pair_reason, _default_pair_reason
    else:
        own_pair, other_pair = _default_pair_reason, _special_pair_reason

    return [
        *own_pair(item, config),
        *other_pair(item, config),
        *_missing_location_reason(item, config),
        *_orphan_reason(item, config),
    ]


def _good_remark(presence: Presence) -> str:
    if presence.locations and not presence.unlisted:
        return "Item correctly placed in all relevant locations and not in any unlisted sources"
    if not presence.locations and presence.unlisted:
        return f"Item correctly only in unlisted sources: {', '.join(presence.unlisted)}"
    return "Item follows all location/unlisted pairing rules"


def _presence_remarks(presence: Presence) -> list[str]:
    remarks = []
    if presence.locations:
        remarks.append(f"Present in locations: {', '.join(presence.locations)}")
    if presence.unlisted:
        remarks.append(f"Present in unlisted: {', '.join(presence.unlisted)}")
    if presence.locations and presence.missing_locations:
        remarks.append(f"Missing from locations: {', '.join(presence.missing_locations)}")
    return remarks


def classify_item(item: ConsolidatedItem, config: RunConfiguration) -> ConsolidatedItem:
    """
    Assign the final status and append status and presence remarks.

    Args:
        item: Item after conflict detection
        config: Run configuration

    Returns:
        New item snapshot with final_status, has_data_issues and remarks set
    """
    presence = presence_of(item, config)
    has_data_issues = bool(item.conflict_codes & DATA_ISSUE_CODES)
    status_remarks: list[str] = []

    if ConflictCode.DUPLICATE_BARCODE_ACROSS_SKUS in item.conflict_codes:
        # Rules are not evaluated; the conflict remarks already explain the status.
        status = FinalStatus.CRITICAL_DUPLICATE_BARCODE
    elif presence.is_empty:
        status = FinalStatus.NO_DATA
        status_remarks.append("Item not found in any location or unlisted source")
    else:
        reasons = find_rule_violations(item, config)
        if reasons:
            status = FinalStatus.RULE_VIOLATION
            status_remarks.extend(reasons)
        elif has_data_issues:
            status = FinalStatus.DATA_ISSUES
            status_remarks.append(
                "Item has data quality issues (short barcode/duplicates/SKU differences)"
            )
        else:
            status = FinalStatus.GOOD
            status_remarks.append(_good_remark(presence))

    classified = replace(
        item,
        final_status=status,
        has_data_issues=has_data_issues,
        remarks=(*item.remarks, *status_remarks, *_presence_remarks(presence)),
    )

    logger.debug(
        "item_classified",
        item=item.display_id,
        rule_group=item.rule_group.value,
        status=classified.status_code,
        conflicts=classified.conflict_summary
    )
    return classified


def classify_items(items: list[ConsolidatedItem], config: RunConfiguration) -> list[ConsolidatedItem]:
    """Classify every item, preserving order."""
    return [classify_item(item, config) for item in items]
