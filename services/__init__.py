"""
Business logic services.

The comparison engine is a chain of pure stage modules (prefix, duplicate,
consolidation, conflict, classification) driven by ReconciliationService;
ReportService turns a run into a workbook.
"""

from services.reconciliation_service import (
    ReconciliationService,
    ReconciliationResult,
    get_reconciliation_service,
)
from services.report_service import ReportService, ReportRow, get_report_service

__all__ = [
    "ReconciliationService",
    "ReconciliationResult",
    "get_reconciliation_service",
    "ReportService",
    "ReportRow",
    "get_report_service",
]
