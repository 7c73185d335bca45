"""
Reconciliation service: runs the comparison pipeline for one invocation.

    preprocess -> flag duplicates -> consolidate -> detect conflicts -> classify

Each call builds its own RunConfiguration and item set; the service keeps no
state between runs.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence
import structlog

from models.reconciliation import (
    ConsolidatedItem,
    FinalStatus,
    RuleSet,
    RunConfiguration,
    SourceRecord,
    SourceRow,
)
from services.classification_service import classify_items
from services.conflict_service import detect_conflicts
from services.consolidation_service import consolidate
from services.duplicate_service import flag_source_duplicates
from services.prefix_service import preprocess_sources

logger = structlog.get_logger(__name__)

NamedRows = tuple[str, Sequence[SourceRow]]


@dataclass
class ReconciliationResult:
    """Outcome of one comparison run."""
    config: RunConfiguration
    items: list[ConsolidatedItem] = field(default_factory=list)
    skipped_rows: int = 0

    @property
    def status_counts(self) -> dict[str, int]:
        """Item count per final status, in precedence order (zero counts kept)."""
        counts = Counter(item.final_status for item in self.items)
        return {status.value: counts.get(status, 0) for status in FinalStatus}

    @property
    def total_items(self) -> int:
        return len(self.items)


class ReconciliationService:
    """Compares location and unlisted sources under one rule set."""

    def run(
        self,
        location_sources: Sequence[NamedRows],
        unlisted_sources: Sequence[NamedRows] = (),
        rule_set: RuleSet = RuleSet.RULESET_A,
    ) -> ReconciliationResult:
        """
        Run the full comparison.

        Args:
            location_sources: (name, rows) per location sheet, in report order
            unlisted_sources: (name, rows) per unlisted sheet, in report order
            rule_set: Rule preset for this run

        Returns:
            ReconciliationResult with classified items

        Raises:
            NoLocationSourcesError: If location_sources is empty
            DuplicateSourceNameError: If a source name repeats
        """
        config = RunConfiguration(
            active_rule_set=rule_set,
            location_source_names=tuple(name for name, _ in location_sources),
            unlisted_source_names=tuple(name for name, _ in unlisted_sources),
        )

        logger.info(
            "reconciliation_started",
            rule_set=config.active_rule_set.value,
            locations=list(config.location_source_names),
            unlisted=list(config.unlisted_source_names)
        )

        # Names are re-read from the config so they match its stripped form.
        named = [
            (name, list(rows))
            for name, (_, rows) in zip(
                (*config.location_source_names, *config.unlisted_source_names),
                (*location_sources, *unlisted_sources),
            )
        ]
        named = preprocess_sources(named, config.preset, config.location_source_names)

        records: list[tuple[str, list[SourceRecord]]] = []
        skipped = 0
        for name, rows in named:
            source_records = flag_source_duplicates(name, rows)
            skipped += len(rows) - len(source_records)
            records.append((name, source_records))

        items = consolidate(records, config)
        items = detect_conflicts(items)
        items = classify_items(items, config)

        result = ReconciliationResult(config=config, items=items, skipped_rows=skipped)

        logger.info(
            "reconciliation_completed",
            rule_set=config.active_rule_set.value,
            total_items=result.total_items,
            skipped_rows=skipped,
            status_counts=result.status_counts
        )
        return result


# Singleton instance
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
