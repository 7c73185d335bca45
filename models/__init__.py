"""
Models for the comparison engine and the API.

Engine types live in models.reconciliation; API request/response schemas
in models.comparer.
"""

from models.base import BaseSchema
from models.reconciliation import (
    RuleSet,
    RuleGroup,
    ConflictCode,
    FinalStatus,
    KeyKind,
    RuleSetPreset,
    RULE_SET_PRESETS,
    get_preset,
    RunConfiguration,
    SourceRow,
    SourceRecord,
    ItemKey,
    ConsolidatedItem,
)
from models.comparer import (
    ComparisonItemResponse,
    ComparisonSummaryResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Engine
    "RuleSet",
    "RuleGroup",
    "ConflictCode",
    "FinalStatus",
    "KeyKind",
    "RuleSetPreset",
    "RULE_SET_PRESETS",
    "get_preset",
    "RunConfiguration",
    "SourceRow",
    "SourceRecord",
    "ItemKey",
    "ConsolidatedItem",

    # API
    "ComparisonItemResponse",
    "ComparisonSummaryResponse",
]
