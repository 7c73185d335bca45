"""
Report service: Generate the inventory comparison Excel report.

One row per consolidated item. Column layout:
    Primary SKU, Primary Barcode, Product Name,
    SKU/Barcode per unlisted source,
    SKU/Barcode/Remark per location source,
    In ALL Locations?, In ANY UNLISTED?, Status, ID / Data Problem, Remarks
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
import structlog

from models.reconciliation import FinalStatus, RunConfiguration
from services.classification_service import in_any_relevant_unlisted
from services.reconciliation_service import ReconciliationResult

logger = structlog.get_logger(__name__)

REPORT_SHEET_TITLE = "Inventory Comparison Report"
REPORT_FILENAME = "Inventory_Comparison_Report.xlsx"
REMARKS_SEPARATOR = " | "

# Column width bounds (characters)
MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 80


@dataclass
class ReportRow:
    """One output row, ready to be written as cells."""
    primary_sku: str
    primary_barcode: str
    product_name: str
    unlisted_values: list[tuple[str, str]] = field(default_factory=list)
    location_values: list[tuple[str, str, str]] = field(default_factory=list)
    in_all_locations: bool = False
    in_any_unlisted: bool = False
    status: str = ""
    conflict_codes: str = ""
    remarks: str = ""

    def to_cells(self) -> list[str]:
        cells = [self.primary_sku, self.primary_barcode, self.product_name]
        for sku, barcode in self.unlisted_values:
            cells.extend([sku, barcode])
        for sku, barcode, remark in self.location_values:
            cells.extend([sku, barcode, remark])
        cells.extend([
            "YES" if self.in_all_locations else "NO",
            "YES" if self.in_any_unlisted else "NO",
            self.status,
            self.conflict_codes,
            self.remarks,
        ])
        return cells


def report_headers(config: RunConfiguration) -> list[str]:
    """Header labels for a run's sources, in column order."""
    headers = ["Primary SKU (Consolidated)", "Primary Barcode (Consolidated)", "Product Name"]
    for name in config.unlisted_source_names:
        headers.extend([f"SKU ({name})", f"Barcode ({name})"])
    for name in config.location_source_names:
        headers.extend([f"SKU ({name})", f"Barcode ({name})", f"Remark ({name})"])
    headers.extend([
        "In ALL Locations?",
        "In ANY UNLISTED?",
        "Status",
        "ID / Data Problem",
        "Remarks",
    ])
    return headers


def build_report_rows(result: ReconciliationResult) -> list[ReportRow]:
    """
    Flatten classified items into report rows.

    Sources an item is absent from contribute empty strings.
    """
    config = result.config
    rows = []

    for item in result.items:
        unlisted_values = []
        for name in config.unlisted_source_names:
            record = item.record_for(name)
            if record is None:
                unlisted_values.append(("", ""))
            else:
                unlisted_values.append((record.raw_sku, record.raw_barcode))

        location_values = []
        for name in config.location_source_names:
            record = item.record_for(name)
            if record is None:
                location_values.append(("", "", ""))
            else:
                location_values.append((record.raw_sku, record.raw_barcode, record.remark))

        rows.append(ReportRow(
            primary_sku=item.primary_sku,
            primary_barcode=item.primary_barcode,
            product_name=item.consolidated_product_name,
            unlisted_values=unlisted_values,
            location_values=location_values,
            in_all_locations=all(item.is_present_in(n) for n in config.location_source_names),
            in_any_unlisted=in_any_relevant_unlisted(item, config),
            status=item.status_code,
            conflict_codes=item.conflict_summary,
            remarks=REMARKS_SEPARATOR.join(item.remarks),
        ))

    return rows


class ReportService:
    """Service for generating comparison report files."""

    def generate_workbook(self, result: ReconciliationResult) -> BytesIO:
        """
        Generate the comparison report workbook.

        Args:
            result: Completed reconciliation run

        Returns:
            BytesIO containing the Excel file
        """
        headers = report_headers(result.config)
        rows = build_report_rows(result)

        logger.info(
            "generating_comparison_report",
            items=len(rows),
            columns=len(headers),
        )

        wb = Workbook()
        ws = wb.active
        ws.title = REPORT_SHEET_TITLE

        # Styles
        header_font = Font(bold=True)
        header_fill = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
        thin = Side(style="thin", color="000000")
        thin_border = Border(left=thin, right=thin, top=thin, bottom=thin)
        good_fill = PatternFill(start_color="E0FFE0", end_color="E0FFE0", fill_type="solid")
        warning_fill = PatternFill(start_color="FFFFCC", end_color="FFFFCC", fill_type="solid")
        problem_fill = PatternFill(start_color="FFE0E0", end_color="FFE0E0", fill_type="solid")
        problem_font = Font(bold=True, color="C00000")

        for col, label in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=label)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = Alignment(horizontal="center", vertical="center")

        status_col = headers.index("Status") + 1
        widths = [len(label) for label in headers]

        for row_idx, report_row in enumerate(rows, start=2):
            cells = report_row.to_cells()
            for col, value in enumerate(cells, start=1):
                ws.cell(row=row_idx, column=col, value=value)
                widths[col - 1] = max(widths[col - 1], len(value))

            status_cell = ws.cell(row=row_idx, column=status_col)
            if report_row.status == FinalStatus.GOOD.value:
                status_cell.fill = good_fill
            elif report_row.status == FinalStatus.DATA_ISSUES.value:
                status_cell.fill = warning_fill
            else:
                status_cell.fill = problem_fill
                status_cell.font = problem_font

        for col, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(col)].width = min(
                max(width + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH
            )
        ws.freeze_panes = "A2"

        logger.info(
            "comparison_report_generated",
            items=len(rows),
            status_counts=result.status_counts,
        )

        # Save to BytesIO
        output = BytesIO()
        wb.save(output)
        output.seek(0)

        return output


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get or create ReportService instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
