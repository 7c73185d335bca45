"""
Unit tests for rule classification.

Fixture layouts (see conftest):
    cosmetics_config: Store A, Store B, Cosmetics Store | WEB Unlisted, Clearance Unlisted
    ogf_config: Main Store, OGF Store | OGF Unlisted, General Unlisted
"""

from types import MappingProxyType

import pytest

from models.reconciliation import (
    ConflictCode,
    ConsolidatedItem,
    FinalStatus,
    RuleGroup,
    RuleSet,
    RunConfiguration,
    SourceRow,
)
from services.classification_service import (
    classify_item,
    classify_items,
    find_rule_violations,
    in_any_relevant_unlisted,
    relevant_location_names,
    relevant_unlisted_names,
)
from services.conflict_service import detect_conflicts
from services.consolidation_service import consolidate
from services.duplicate_service import flag_source_duplicates
from tests.factories import SourceRecordFactory


def prepare_item(config: RunConfiguration, source_names: list[str], barcode: str = "B100") -> ConsolidatedItem:
    """Place one S1 row in each named source and run the stages up to classification."""
    ordered = [
        name for name in (*config.location_source_names, *config.unlisted_source_names)
        if name in source_names
    ]
    records = [
        (name, flag_source_duplicates(name, [SourceRow(sku="S1", barcode=barcode, product_name="Item")]))
        for name in ordered
    ]
    items = detect_conflicts(consolidate(records, config))
    assert len(items) == 1
    return items[0]


def manual_item(source_names: list[str], rule_group: RuleGroup) -> ConsolidatedItem:
    """Item with a forced rule group, for layouts consolidation cannot produce."""
    return ConsolidatedItem(
        primary_sku="S1",
        primary_barcode="B100",
        rule_group=rule_group,
        sources_by_name=MappingProxyType({
            name: SourceRecordFactory.create(source_name=name) for name in source_names
        }),
    )


# ===================
# RELEVANCE
# ===================

class TestRelevance:
    """Tests for relevant location / unlisted selection."""

    def test_special_item(self, cosmetics_config):
        item = prepare_item(cosmetics_config, ["Cosmetics Store"])

        assert relevant_location_names(item, cosmetics_config) == ("Cosmetics Store",)
        assert relevant_unlisted_names(item, cosmetics_config) == ("WEB Unlisted",)

    def test_default_item(self, cosmetics_config):
        item = prepare_item(cosmetics_config, ["Store A"])

        assert relevant_location_names(item, cosmetics_config) == ("Store A", "Store B")
        assert relevant_unlisted_names(item, cosmetics_config) == ("Clearance Unlisted",)

    def test_in_any_relevant_unlisted(self, cosmetics_config):
        both = prepare_item(cosmetics_config, ["Cosmetics Store", "WEB Unlisted"])
        unlisted_only = prepare_item(cosmetics_config, ["Clearance Unlisted"])
        other_group = prepare_item(cosmetics_config, ["Store A", "Store B", "WEB Unlisted"])

        assert in_any_relevant_unlisted(both, cosmetics_config) is True
        assert in_any_relevant_unlisted(unlisted_only, cosmetics_config) is False
        assert in_any_relevant_unlisted(other_group, cosmetics_config) is False


# ===================
# RULESET_A (COSMETICS)
# ===================

class TestCosmeticsRules:
    """Presence rules under RULESET_A."""

    def test_special_in_location_and_counterpart(self, cosmetics_config):
        item = classify_item(prepare_item(cosmetics_config, ["Cosmetics Store", "WEB Unlisted"]), cosmetics_config)

        assert item.final_status == FinalStatus.RULE_VIOLATION
        assert item.remarks == (
            "Cosmetics item should not appear in both Cosmetics Store and WEB Unlisted",
            "Present in locations: Cosmetics Store",
            "Present in unlisted: WEB Unlisted",
            "Missing from locations: Store A, Store B",
        )

    def test_default_in_all_default_locations_is_good(self, cosmetics_config):
        item = classify_item(prepare_item(cosmetics_config, ["Store A", "Store B"]), cosmetics_config)

        assert item.final_status == FinalStatus.GOOD
        assert item.remarks[0] == "Item correctly placed in all relevant locations and not in any unlisted sources"

    def test_default_missing_from_default_location(self, cosmetics_config):
        item = prepare_item(cosmetics_config, ["Store A"])

        assert find_rule_violations(item, cosmetics_config) == ["Item missing from locations: Store B"]

    def test_default_unlisted_with_default_location(self, cosmetics_config):
        """Clearance listing explains the Store B gap but conflicts with Store A."""
        item = prepare_item(cosmetics_config, ["Store A", "Clearance Unlisted"])

        assert find_rule_violations(item, cosmetics_config) == [
            "Non-Cosmetics unlisted item should not appear in locations: Store A"
        ]

    def test_default_unlisted_only_is_good(self, cosmetics_config):
        item = classify_item(prepare_item(cosmetics_config, ["Clearance Unlisted"]), cosmetics_config)

        assert item.final_status == FinalStatus.GOOD
        assert item.remarks == (
            "Item correctly only in unlisted sources: Clearance Unlisted",
            "Present in unlisted: Clearance Unlisted",
        )

    def test_default_item_in_counterpart_only_is_not_orphan(self, cosmetics_config):
        item = prepare_item(cosmetics_config, ["WEB Unlisted"])

        assert item.rule_group == RuleGroup.DEFAULT
        assert find_rule_violations(item, cosmetics_config) == []

    def test_special_item_leaking_into_default_unlisted(self, cosmetics_config):
        item = prepare_item(cosmetics_config, ["Store A", "Cosmetics Store", "Clearance Unlisted"])

        assert item.rule_group == RuleGroup.SPECIAL
        assert find_rule_violations(item, cosmetics_config) == [
            "Non-Cosmetics unlisted item should not appear in locations: Store A"
        ]

    def test_special_orphan(self, cosmetics_config):
        item = manual_item(["Clearance Unlisted"], RuleGroup.SPECIAL)

        assert find_rule_violations(item, cosmetics_config) == [
            "Cosmetics item missing from both Cosmetics location and Cosmetics unlisted"
        ]


# ===================
# RULESET_B (OGF)
# ===================

class TestOgfRules:
    """Presence rules under RULESET_B."""

    def test_default_unlisted_checked_against_all_locations(self, ogf_config):
        item = prepare_item(ogf_config, ["OGF Store", "General Unlisted"])

        assert item.rule_group == RuleGroup.SPECIAL
        assert find_rule_violations(item, ogf_config) == [
            "Non-OGF unlisted item should not appear in locations: OGF Store"
        ]

    def test_special_in_location_and_counterpart(self, ogf_config):
        item = prepare_item(ogf_config, ["OGF Store", "OGF Unlisted"])

        assert find_rule_violations(item, ogf_config) == [
            "OGF item should not appear in both OGF Store and OGF Unlisted"
        ]

    def test_counterpart_only_item_is_default_orphan(self, ogf_config):
        """An unlisted sheet never makes an item SPECIAL, even when its name matches."""
        item = classify_item(prepare_item(ogf_config, ["OGF Unlisted"]), ogf_config)

        assert item.rule_group == RuleGroup.DEFAULT
        assert item.final_status == FinalStatus.RULE_VIOLATION
        assert "Non-OGF item missing from all locations and non-OGF unlisted sources" in item.remarks

    def test_default_orphan_ignores_counterpart(self, ogf_config):
        item = manual_item(["OGF Unlisted"], RuleGroup.DEFAULT)

        assert find_rule_violations(item, ogf_config) == [
            "Non-OGF item missing from all locations and non-OGF unlisted sources"
        ]

    def test_own_group_reason_listed_first(self, ogf_config):
        item = manual_item(["OGF Store", "OGF Unlisted", "General Unlisted"], RuleGroup.DEFAULT)

        assert find_rule_violations(item, ogf_config) == [
            "Non-OGF unlisted item should not appear in locations: OGF Store",
            "OGF item should not appear in both OGF Store and OGF Unlisted",
        ]


# ===================
# STATUS PRECEDENCE
# ===================

class TestStatusPrecedence:
    """Tests for the final status ladder."""

    def test_critical_skips_rules(self, two_store_config):
        records = [
            ("LocA", flag_source_duplicates("LocA", [SourceRow(sku="S1", barcode="B900")])),
            ("LocB", flag_source_duplicates("LocB", [SourceRow(sku="S2", barcode="B900")])),
        ]
        items = [classify_item(i, two_store_config) for i in detect_conflicts(consolidate(records, two_store_config))]

        for item in items:
            assert item.final_status == FinalStatus.CRITICAL_DUPLICATE_BARCODE
            assert item.status_code == "CRITICAL_DUPLICATE_BARCODE"
            assert not any(r.startswith("Item missing from locations") for r in item.remarks)
            assert item.remarks[-1].startswith("Missing from locations:")

    def test_no_data(self, two_store_config):
        item = classify_item(ConsolidatedItem(primary_sku="S1", primary_barcode="B1"), two_store_config)

        assert item.final_status == FinalStatus.NO_DATA
        assert item.remarks == ("Item not found in any location or unlisted source",)

    def test_data_issues_without_violation(self, two_store_config):
        item = classify_item(prepare_item(two_store_config, ["LocA", "LocB"], barcode="12"), two_store_config)

        assert item.final_status == FinalStatus.DATA_ISSUES
        assert item.has_data_issues is True
        assert item.remarks[:2] == (
            "Short barcodes (<3 chars) in: LocA('12'), LocB('12')",
            "Item has data quality issues (short barcode/duplicates/SKU differences)",
        )

    def test_violation_with_data_issues(self, two_store_config):
        item = classify_item(prepare_item(two_store_config, ["LocA"], barcode="12"), two_store_config)

        assert item.final_status == FinalStatus.RULE_VIOLATION
        assert item.status_code == "RULE_VIOLATION+DATA_ISSUES"

    def test_shared_barcode_with_barcode_only_item_is_good(self):
        """A barcode shared with a barcode-only item is tagged but is not a data issue."""
        config = RunConfiguration(
            active_rule_set=RuleSet.RULESET_A,
            location_source_names=("LocA", "LocB"),
            unlisted_source_names=("Clearance",),
        )
        records = [
            ("LocA", flag_source_duplicates("LocA", [SourceRow(sku="S1", barcode="B900")])),
            ("LocB", flag_source_duplicates("LocB", [SourceRow(sku="S1", barcode="B900")])),
            ("Clearance", flag_source_duplicates("Clearance", [SourceRow(sku="", barcode="B900")])),
        ]
        items = classify_items(detect_conflicts(consolidate(records, config)), config)

        s1 = next(i for i in items if i.primary_sku == "S1")
        assert s1.conflict_codes == frozenset({ConflictCode.DUPLICATE_BARCODE_ACROSS_ITEMS})
        assert s1.remarks[0].startswith("Barcode B900 shared with other items")
        assert s1.has_data_issues is False
        assert s1.final_status == FinalStatus.GOOD

    def test_violation_with_shared_barcode_only_has_no_suffix(self, two_store_config):
        records = [
            ("LocA", flag_source_duplicates("LocA", [SourceRow(sku="S1", barcode="B900")])),
            ("LocB", flag_source_duplicates("LocB", [SourceRow(sku="", barcode="B900")])),
        ]
        items = classify_items(detect_conflicts(consolidate(records, two_store_config)), two_store_config)

        s1 = next(i for i in items if i.primary_sku == "S1")
        assert s1.final_status == FinalStatus.RULE_VIOLATION
        assert s1.status_code == "RULE_VIOLATION"

    def test_good(self, two_store_config):
        """Same SKU and barcode in both locations."""
        item = classify_item(prepare_item(two_store_config, ["LocA", "LocB"]), two_store_config)

        assert item.final_status == FinalStatus.GOOD
        assert item.conflict_codes == frozenset()
        assert item.has_data_issues is False
        assert item.remarks == (
            "Item correctly placed in all relevant locations and not in any unlisted sources",
            "Present in locations: LocA, LocB",
        )

    @pytest.mark.parametrize("names", [["LocA"], ["LocA", "LocB"]])
    def test_classification_returns_new_snapshot(self, two_store_config, names):
        item = prepare_item(two_store_config, names)

        classified = classify_item(item, two_store_config)

        assert item.final_status is None
        assert classified is not item
        assert classified == item
