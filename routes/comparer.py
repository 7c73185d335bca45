"""
SKU comparer routes.

Upload location and unlisted sheets, get back the comparison report
(Excel download) or a JSON summary of the same run. Uploads are read into
memory; nothing is written to disk.
"""

from io import BytesIO
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
import structlog

from config import settings
from exceptions import AppError, UploadTooLargeError
from models.comparer import ComparisonItemResponse, ComparisonSummaryResponse
from models.reconciliation import ConsolidatedItem, RuleSet, RunConfiguration
from parsers.source_parser import ParsedSource, parse_source
from services.classification_service import in_any_relevant_unlisted
from services.reconciliation_service import ReconciliationResult, get_reconciliation_service
from services.report_service import REPORT_FILENAME, get_report_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/comparer", tags=["SKU Comparer"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# ===================
# HELPERS
# ===================

async def _read_uploads(files: list[UploadFile]) -> list[ParsedSource]:
    """Read and parse uploaded sheets, enforcing the size limit."""
    sources = []
    for upload in files:
        content = await upload.read()
        if len(content) > settings.max_upload_bytes:
            raise UploadTooLargeError(
                filename=upload.filename or "",
                size=len(content),
                limit=settings.max_upload_bytes,
            )
        sources.append(await run_in_threadpool(parse_source, BytesIO(content), upload.filename))
    return sources


async def _run_comparison(
    location_files: list[UploadFile],
    unlisted_files: Optional[list[UploadFile]],
    rule_set: Optional[RuleSet],
) -> ReconciliationResult:
    active_rule_set = rule_set or settings.default_rule_set

    locations = await _read_uploads(location_files)
    unlisted = await _read_uploads(unlisted_files or [])

    service = get_reconciliation_service()
    return await run_in_threadpool(
        service.run,
        [source.as_named_rows() for source in locations],
        [source.as_named_rows() for source in unlisted],
        active_rule_set,
    )


def _item_response(item: ConsolidatedItem, config: RunConfiguration) -> ComparisonItemResponse:
    return ComparisonItemResponse(
        primary_sku=item.primary_sku,
        primary_barcode=item.primary_barcode,
        product_name=item.consolidated_product_name,
        rule_group=item.rule_group,
        status=item.status_code,
        conflict_codes=[code.value for code in item.ordered_conflict_codes],
        remarks=list(item.remarks),
        present_in_locations=[n for n in config.location_source_names if item.is_present_in(n)],
        present_in_unlisted=[n for n in config.unlisted_source_names if item.is_present_in(n)],
        in_all_locations=all(item.is_present_in(n) for n in config.location_source_names),
        in_any_relevant_unlisted=in_any_relevant_unlisted(item, config),
    )


# ===================
# ROUTES
# ===================

@router.post("/generate")
async def generate_report(
    location_files: list[UploadFile] = File(..., description="Location stock sheets"),
    unlisted_files: Optional[list[UploadFile]] = File(None, description="Unlisted/excluded sheets"),
    rule_set: Optional[RuleSet] = Form(None, description="Rule preset (defaults to server setting)"),
):
    """
    Compare the uploaded sheets and download the Excel report.

    Returns:
        Inventory_Comparison_Report.xlsx as an attachment
    """
    logger.info(
        "comparison_report_requested",
        locations=len(location_files),
        unlisted=len(unlisted_files or []),
        rule_set=rule_set.value if rule_set else None
    )

    try:
        result = await _run_comparison(location_files, unlisted_files, rule_set)
        output = await run_in_threadpool(get_report_service().generate_workbook, result)

        return Response(
            content=output.getvalue(),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"'},
        )

    except Exception as e:
        return handle_error(e)


@router.post("/summary", response_model=ComparisonSummaryResponse)
async def comparison_summary(
    location_files: list[UploadFile] = File(..., description="Location stock sheets"),
    unlisted_files: Optional[list[UploadFile]] = File(None, description="Unlisted/excluded sheets"),
    rule_set: Optional[RuleSet] = Form(None, description="Rule preset (defaults to server setting)"),
):
    """
    Compare the uploaded sheets and return the result as JSON.

    Returns:
        Status counts and per-item status, conflicts and remarks
    """
    logger.info(
        "comparison_summary_requested",
        locations=len(location_files),
        unlisted=len(unlisted_files or []),
        rule_set=rule_set.value if rule_set else None
    )

    try:
        result = await _run_comparison(location_files, unlisted_files, rule_set)
        config = result.config

        return ComparisonSummaryResponse(
            rule_set=config.active_rule_set,
            location_sources=list(config.location_source_names),
            unlisted_sources=list(config.unlisted_source_names),
            total_items=result.total_items,
            skipped_rows=result.skipped_rows,
            status_counts=result.status_counts,
            items=[_item_response(item, config) for item in result.items],
        )

    except Exception as e:
        return handle_error(e)
