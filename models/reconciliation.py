"""
Core types for the SKU comparison engine.

The engine is a chain of pure stages. Each stage receives immutable values
(SourceRecord, ConsolidatedItem, RunConfiguration) and hands new snapshots to
the next stage; nothing here holds process-wide state.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from exceptions import DuplicateSourceNameError, NoLocationSourcesError


class RuleSet(str, Enum):
    """Selectable rule presets (see RULE_SET_PRESETS)."""
    RULESET_A = "RULESET_A"  # Cosmetics locations paired with the WEB unlisted sheet
    RULESET_B = "RULESET_B"  # OGF locations paired with the OGF unlisted sheet


class RuleGroup(str, Enum):
    """Which location/unlisted subset an item's presence rules apply to."""
    SPECIAL = "SPECIAL"
    DEFAULT = "DEFAULT"


class ConflictCode(str, Enum):
    """Data-quality tags. Declaration order is the display order."""
    DUPLICATE_BARCODE_ACROSS_SKUS = "DUPLICATE_BARCODE_ACROSS_SKUS"
    DUPLICATE_BARCODE_ACROSS_ITEMS = "DUPLICATE_BARCODE_ACROSS_ITEMS"
    INCONSISTENT_SKU = "INCONSISTENT_SKU"
    INCONSISTENT_BARCODE = "INCONSISTENT_BARCODE"
    FILE_DUPLICATE = "FILE_DUPLICATE"
    SHORT_BARCODE = "SHORT_BARCODE"


class FinalStatus(str, Enum):
    """Final item status, listed in descending precedence."""
    CRITICAL_DUPLICATE_BARCODE = "CRITICAL_DUPLICATE_BARCODE"
    NO_DATA = "NO_DATA"
    RULE_VIOLATION = "RULE_VIOLATION"
    DATA_ISSUES = "DATA_ISSUES"
    GOOD = "GOOD"


class KeyKind(str, Enum):
    """Identifier an item is keyed by during consolidation."""
    SKU = "SKU"
    BARCODE = "BARCODE"


# ===================
# RULE SET PRESETS
# ===================

@dataclass(frozen=True)
class RuleSetPreset:
    """
    Keyword configuration behind a RuleSet.

    Attributes:
        rule_set: Preset identifier
        label: Human name of the special group, used in remarks
        special_location_keywords: Substrings marking a special-group location
        special_unlisted_keywords: Substrings marking the counterpart unlisted sheet
        default_unlisted_checks_all_locations: Default unlisted sheets must not
            overlap any location (True) or only default-group locations (False)
        default_orphan_checks_all_unlisted: A DEFAULT item with no location is an
            orphan unless present in any unlisted sheet (True) or in a default
            unlisted sheet (False)
        special_sku_prefix: Prefix expected on SKUs of special location sheets
    """
    rule_set: RuleSet
    label: str
    special_location_keywords: tuple[str, ...]
    special_unlisted_keywords: tuple[str, ...]
    default_unlisted_checks_all_locations: bool
    default_orphan_checks_all_unlisted: bool
    special_sku_prefix: Optional[str] = None

    def is_special_location(self, source_name: str) -> bool:
        """True if the source name contains a special location keyword."""
        name = source_name.lower()
        return any(keyword in name for keyword in self.special_location_keywords)

    def is_special_unlisted(self, source_name: str) -> bool:
        """True if the source name contains a counterpart unlisted keyword."""
        name = source_name.lower()
        return any(keyword in name for keyword in self.special_unlisted_keywords)


RULE_SET_PRESETS: dict[RuleSet, RuleSetPreset] = {
    RuleSet.RULESET_A: RuleSetPreset(
        rule_set=RuleSet.RULESET_A,
        label="Cosmetics",
        special_location_keywords=("cosmetic", "cos"),
        special_unlisted_keywords=("web",),
        default_unlisted_checks_all_locations=False,
        default_orphan_checks_all_unlisted=True,
    ),
    RuleSet.RULESET_B: RuleSetPreset(
        rule_set=RuleSet.RULESET_B,
        label="OGF",
        special_location_keywords=("ogf",),
        special_unlisted_keywords=("ogf",),
        default_unlisted_checks_all_locations=True,
        default_orphan_checks_all_unlisted=False,
        special_sku_prefix="OGF-",
    ),
}


def get_preset(rule_set: RuleSet) -> RuleSetPreset:
    """Return the keyword preset for a rule set."""
    return RULE_SET_PRESETS[RuleSet(rule_set)]


# ===================
# RUN CONFIGURATION
# ===================

class RunConfiguration(BaseModel):
    """
    Per-invocation configuration.

    Immutable and passed explicitly to every stage, so concurrent runs with
    different rule sets never observe each other.

    Raises:
        NoLocationSourcesError: If no location source is named
        DuplicateSourceNameError: If a name repeats (case-insensitive),
            including across the location and unlisted lists
    """

    model_config = ConfigDict(frozen=True)

    active_rule_set: RuleSet = Field(
        default=RuleSet.RULESET_A,
        description="Rule preset applied to this run"
    )
    location_source_names: tuple[str, ...] = Field(
        default=(),
        description="Location sources in report column order"
    )
    unlisted_source_names: tuple[str, ...] = Field(
        default=(),
        description="Unlisted sources in report column order"
    )

    @field_validator("location_source_names", "unlisted_source_names")
    @classmethod
    def strip_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Source names are compared trimmed."""
        return tuple(name.strip() for name in v)

    @model_validator(mode="after")
    def check_sources(self) -> "RunConfiguration":
        """Require a location source and globally unique names."""
        if not self.location_source_names:
            raise NoLocationSourcesError()

        seen: set[str] = set()
        for name in (*self.location_source_names, *self.unlisted_source_names):
            folded = name.lower()
            if folded in seen:
                raise DuplicateSourceNameError(name)
            seen.add(folded)
        return self

    # ===================
    # DERIVED SOURCE GROUPS
    # ===================

    @property
    def preset(self) -> RuleSetPreset:
        return get_preset(self.active_rule_set)

    @property
    def special_location_names(self) -> tuple[str, ...]:
        return tuple(n for n in self.location_source_names if self.preset.is_special_location(n))

    @property
    def default_location_names(self) -> tuple[str, ...]:
        return tuple(n for n in self.location_source_names if not self.preset.is_special_location(n))

    @property
    def counterpart_unlisted_name(self) -> Optional[str]:
        """First unlisted source matching the counterpart keywords, if any."""
        for name in self.unlisted_source_names:
            if self.preset.is_special_unlisted(name):
                return name
        return None

    @property
    def default_unlisted_names(self) -> tuple[str, ...]:
        counterpart = self.counterpart_unlisted_name
        return tuple(n for n in self.unlisted_source_names if n != counterpart)

    def is_location(self, source_name: str) -> bool:
        return source_name in self.location_source_names


# ===================
# SOURCE DATA
# ===================

@dataclass
class SourceRow:
    """One row handed over by the source parser, before any checks."""
    sku: Optional[str] = None
    barcode: Optional[str] = None
    product_name: Optional[str] = None
    remark: Optional[str] = None


@dataclass(frozen=True)
class SourceRecord:
    """One row of one named source, with its per-source duplicate flags."""
    source_name: str
    raw_sku: str = ""
    raw_barcode: str = ""
    raw_product_name: str = ""
    remark: str = ""
    is_duplicate_in_source: bool = False
    is_sku_duplicate_in_source: bool = False
    is_barcode_duplicate_in_source: bool = False
    has_short_barcode: bool = False


@dataclass(frozen=True)
class ItemKey:
    """
    Consolidation key: SKU when present, otherwise Barcode.

    Values are case-folded so lookups are case-insensitive.
    """
    kind: KeyKind
    value: str

    @classmethod
    def for_sku(cls, sku: str) -> "ItemKey":
        return cls(KeyKind.SKU, sku.strip().lower())

    @classmethod
    def for_barcode(cls, barcode: str) -> "ItemKey":
        return cls(KeyKind.BARCODE, barcode.strip().lower())

    @classmethod
    def for_record(cls, record: SourceRecord) -> Optional["ItemKey"]:
        """Key a record, or None when it has neither SKU nor Barcode."""
        if record.raw_sku:
            return cls.for_sku(record.raw_sku)
        if record.raw_barcode:
            return cls.for_barcode(record.raw_barcode)
        return None


# ===================
# CONSOLIDATED ITEM
# ===================

@dataclass(frozen=True, eq=False)
class ConsolidatedItem:
    """
    One physical product merged across all sources.

    Later stages return copies (dataclasses.replace) rather than mutating.
    Identity is the case-insensitive (primary_sku, primary_barcode) pair.
    """
    primary_sku: str
    primary_barcode: str
    primary_sku_source: str = ""
    consolidated_product_name: str = ""
    sources_by_name: Mapping[str, SourceRecord] = field(
        default_factory=lambda: MappingProxyType({})
    )
    rule_group: RuleGroup = RuleGroup.DEFAULT
    conflict_codes: frozenset[ConflictCode] = frozenset()
    final_status: Optional[FinalStatus] = None
    has_data_issues: bool = False
    remarks: tuple[str, ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConsolidatedItem):
            return NotImplemented
        return (
            self.primary_sku.lower() == other.primary_sku.lower()
            and self.primary_barcode.lower() == other.primary_barcode.lower()
        )

    def __hash__(self) -> int:
        return hash((self.primary_sku.lower(), self.primary_barcode.lower()))

    @property
    def key(self) -> ItemKey:
        if self.primary_sku:
            return ItemKey.for_sku(self.primary_sku)
        return ItemKey.for_barcode(self.primary_barcode)

    @property
    def display_id(self) -> str:
        """SKU, or the barcode for items that were keyed by barcode."""
        return self.primary_sku or self.primary_barcode

    def is_present_in(self, source_name: str) -> bool:
        return source_name in self.sources_by_name

    def record_for(self, source_name: str) -> Optional[SourceRecord]:
        return self.sources_by_name.get(source_name)

    @property
    def ordered_conflict_codes(self) -> list[ConflictCode]:
        return [code for code in ConflictCode if code in self.conflict_codes]

    @property
    def conflict_summary(self) -> str:
        """Conflict codes joined for display, e.g. "FILE_DUPLICATE + SHORT_BARCODE"."""
        return " + ".join(code.value for code in self.ordered_conflict_codes)

    @property
    def status_code(self) -> str:
        """Short status code; rule violations carry a +DATA_ISSUES annotation."""
        if self.final_status is None:
            return ""
        if self.final_status == FinalStatus.RULE_VIOLATION and self.has_data_issues:
            return f"{FinalStatus.RULE_VIOLATION.value}+{FinalStatus.DATA_ISSUES.value}"
        return self.final_status.value
