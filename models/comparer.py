"""
Comparer API schemas.

The spreadsheet endpoint streams a workbook; these schemas back the JSON
summary endpoint.
"""

from pydantic import Field

from models.base import BaseSchema
from models.reconciliation import RuleGroup, RuleSet


class ComparisonItemResponse(BaseSchema):
    """One consolidated item as returned by the summary endpoint."""

    primary_sku: str = Field(..., description="Consolidated SKU (may be empty)")
    primary_barcode: str = Field(..., description="Consolidated barcode")
    product_name: str = Field(..., description="Resolved product title")
    rule_group: RuleGroup
    status: str = Field(..., description="Short status code, e.g. RULE_VIOLATION+DATA_ISSUES")
    conflict_codes: list[str] = Field(default_factory=list)
    remarks: list[str] = Field(default_factory=list)
    present_in_locations: list[str] = Field(default_factory=list)
    present_in_unlisted: list[str] = Field(default_factory=list)
    in_all_locations: bool
    in_any_relevant_unlisted: bool


class ComparisonSummaryResponse(BaseSchema):
    """Result of one comparison run."""

    rule_set: RuleSet
    location_sources: list[str]
    unlisted_sources: list[str]
    total_items: int = Field(..., ge=0)
    skipped_rows: int = Field(default=0, ge=0, description="Rows without SKU and Barcode")
    status_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Item count per final status"
    )
    items: list[ComparisonItemResponse]
