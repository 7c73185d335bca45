"""
Source sheet parser.

Reads one uploaded location or unlisted sheet (Excel or CSV) and resolves
its SKU, Barcode, Product Name and Remark columns by header text. Only the
first sheet of a workbook is read; the header is the first row.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union
import structlog

import pandas as pd

from exceptions import SourceColumnsError, SourceParseError
from models.reconciliation import SourceRow

logger = structlog.get_logger(__name__)

SOURCE_EXTENSIONS = (".xlsx", ".xls", ".csv")

# Column roles
ROLE_SKU = "sku"
ROLE_BARCODE = "barcode"
ROLE_PRODUCT_NAME = "product_name"
ROLE_REMARK = "remark"


@dataclass
class ParsedSource:
    """Rows of one source with the headers each role resolved to."""
    name: str
    rows: list[SourceRow] = field(default_factory=list)
    columns: dict[str, str] = field(default_factory=dict)

    @property
    def has_sku(self) -> bool:
        return ROLE_SKU in self.columns

    @property
    def has_barcode(self) -> bool:
        return ROLE_BARCODE in self.columns

    def as_named_rows(self) -> tuple[str, list[SourceRow]]:
        return self.name, self.rows


def source_name_from_filename(filename: str) -> str:
    """
    Strip the directory and a known spreadsheet extension.

    'uploads/Store A.xlsx' -> 'Store A'
    'WEB unlisted.CSV' -> 'WEB unlisted'
    """
    name = Path(filename).name.strip()
    lower = name.lower()
    for extension in SOURCE_EXTENSIONS:
        if lower.endswith(extension):
            return name[: -len(extension)].strip()
    return name


def header_role(header: str) -> Optional[str]:
    """
    Role a header fills, or None.

    'Variant SKU' -> sku
    'Variant Barcode' -> barcode
    'Product' / 'Title' -> product_name
    'OGF Remark' -> remark
    """
    text = str(header).strip().lower()
    if "sku" in text:
        return ROLE_SKU
    if "barcode" in text:
        return ROLE_BARCODE
    if text == "product" or "title" in text:
        return ROLE_PRODUCT_NAME
    if "remark" in text:
        return ROLE_REMARK
    return None


def resolve_columns(headers: list[str]) -> dict[str, str]:
    """Map each role to the first header that fills it."""
    columns: dict[str, str] = {}
    for header in headers:
        role = header_role(header)
        if role is not None and role not in columns:
            columns[role] = header
    return columns


def cell_to_string(value: Any) -> str:
    """
    Render a cell as text.

    Empty cells become "", integral floats drop the ".0"
    (Excel stores numeric barcodes as floats).
    """
    if isinstance(value, str):
        return value.strip()
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _read_frame(file: Union[str, Path, BytesIO], filename: str, name: str) -> pd.DataFrame:
    try:
        if filename.lower().endswith(".csv"):
            return pd.read_csv(file, dtype=str, keep_default_na=False)
        excel = pd.ExcelFile(file, engine="openpyxl")
        return excel.parse(excel.sheet_names[0], dtype=object, keep_default_na=False)
    except Exception as e:
        logger.error("source_read_failed", source=name, error=str(e))
        raise SourceParseError(
            source=name,
            message=f"Failed to read source file: {filename}",
            details={"original_error": str(e)}
        )


def parse_source(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
) -> ParsedSource:
    """
    Parse one source sheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original file name; required for file-like objects, used
                  for the source name and to tell CSV from Excel

    Returns:
        ParsedSource with one SourceRow per data row

    Raises:
        SourceParseError: If the file cannot be read
        SourceColumnsError: If neither a SKU nor a Barcode column is found
    """
    if filename is None:
        if isinstance(file, (str, Path)):
            filename = str(file)
        else:
            raise SourceParseError(source="", message="File name is required for uploaded sources")

    name = source_name_from_filename(filename)
    logger.info("parsing_source", source=name, file_type=type(file).__name__)

    df = _read_frame(file, filename, name)
    headers = [str(col).strip() for col in df.columns]
    df.columns = headers
    columns = resolve_columns(headers)

    if ROLE_SKU not in columns and ROLE_BARCODE not in columns:
        logger.error("source_columns_missing", source=name, headers=headers)
        raise SourceColumnsError(name, headers)

    for role in (ROLE_SKU, ROLE_BARCODE):
        if role not in columns:
            logger.warning("source_column_missing", source=name, role=role)

    def cell(row: pd.Series, role: str) -> Optional[str]:
        header = columns.get(role)
        if header is None:
            return None
        return cell_to_string(row[header])

    rows = [
        SourceRow(
            sku=cell(row, ROLE_SKU),
            barcode=cell(row, ROLE_BARCODE),
            product_name=cell(row, ROLE_PRODUCT_NAME),
            remark=cell(row, ROLE_REMARK),
        )
        for _, row in df.iterrows()
    ]

    logger.info(
        "source_parsed",
        source=name,
        rows=len(rows),
        columns=columns
    )

    return ParsedSource(name=name, rows=rows, columns=columns)
