"""
Unit tests for the source sheet parser.
"""

from io import BytesIO

import pytest

from exceptions import SourceColumnsError, SourceParseError
from parsers.source_parser import (
    ROLE_BARCODE,
    ROLE_PRODUCT_NAME,
    ROLE_REMARK,
    ROLE_SKU,
    cell_to_string,
    header_role,
    parse_source,
    resolve_columns,
    source_name_from_filename,
)
from tests.factories import create_sheet_file, sheet_row


class TestSourceName:
    """Tests for source_name_from_filename()."""

    @pytest.mark.parametrize("filename, expected", [
        ("Store A.xlsx", "Store A"),
        ("WEB Unlisted.CSV", "WEB Unlisted"),
        ("uploads/ogf store.xls", "ogf store"),
        ("notes.txt", "notes.txt"),
    ])
    def test_extension_stripped(self, filename, expected):
        assert source_name_from_filename(filename) == expected


class TestHeaderRoles:
    """Tests for header role resolution."""

    @pytest.mark.parametrize("header, role", [
        ("Variant SKU", ROLE_SKU),
        ("sku", ROLE_SKU),
        ("Variant Barcode", ROLE_BARCODE),
        ("Product", ROLE_PRODUCT_NAME),
        ("Title", ROLE_PRODUCT_NAME),
        ("OGF Remark", ROLE_REMARK),
        ("Product Type", None),
        ("Price", None),
    ])
    def test_role(self, header, role):
        assert header_role(header) == role

    def test_first_matching_header_wins(self):
        columns = resolve_columns(["Handle", "Variant SKU", "Old SKU", "Title", "SEO Title"])

        assert columns == {ROLE_SKU: "Variant SKU", ROLE_PRODUCT_NAME: "Title"}


class TestCellToString:
    """Tests for cell_to_string()."""

    def test_integral_float(self):
        assert cell_to_string(8801234567890.0) == "8801234567890"

    def test_fractional_float(self):
        assert cell_to_string(12.5) == "12.5"

    def test_int(self):
        assert cell_to_string(123) == "123"

    def test_nan(self):
        assert cell_to_string(float("nan")) == ""

    def test_none(self):
        assert cell_to_string(None) == ""

    def test_string_trimmed(self):
        assert cell_to_string("  S1 ") == "S1"


class TestParseSource:
    """Tests for parse_source()."""

    def test_xlsx(self):
        file = create_sheet_file([
            sheet_row("S1", "B1000", "Rose Cream", "ok"),
            sheet_row("S2", "B2000", "Lip Balm"),
        ])

        source = parse_source(file, "Store A.xlsx")

        assert source.name == "Store A"
        assert len(source.rows) == 2
        assert source.rows[0].sku == "S1"
        assert source.rows[0].barcode == "B1000"
        assert source.rows[0].product_name == "Rose Cream"
        assert source.rows[0].remark == "ok"
        assert source.rows[1].remark == ""

    def test_csv(self):
        file = create_sheet_file([sheet_row("S1", "007", "Rose Cream")], csv=True)

        source = parse_source(file, "WEB Unlisted.csv")

        assert source.name == "WEB Unlisted"
        # Leading zeros survive as text
        assert source.rows[0].barcode == "007"

    def test_numeric_barcode_loses_decimal(self):
        file = create_sheet_file(
            [{"SKU": "S1", "Barcode": 8801234567890}, {"SKU": "S2", "Barcode": None}],
            columns=["SKU", "Barcode"],
        )

        source = parse_source(file, "LocA.xlsx")

        assert source.rows[0].barcode == "8801234567890"
        assert source.rows[1].barcode == ""

    def test_placeholder_text_kept_verbatim(self):
        file = create_sheet_file([sheet_row("S1", "N/A", "Rose Cream")])

        source = parse_source(file, "LocA.xlsx")

        assert source.rows[0].barcode == "N/A"

    def test_barcode_only_source_allowed(self):
        file = create_sheet_file([{"Barcode": "B1000"}], columns=["Barcode"])

        source = parse_source(file, "LocA.xlsx")

        assert source.has_barcode is True
        assert source.has_sku is False
        assert source.rows[0].sku is None
        assert source.rows[0].barcode == "B1000"

    def test_missing_identifier_columns(self):
        file = create_sheet_file([{"Name": "x", "Price": 1}], columns=["Name", "Price"])

        with pytest.raises(SourceColumnsError) as exc_info:
            parse_source(file, "LocA.xlsx")

        assert exc_info.value.code == "SOURCE_MISSING_COLUMNS"
        assert exc_info.value.details["headers"] == ["Name", "Price"]

    def test_unreadable_file(self):
        with pytest.raises(SourceParseError) as exc_info:
            parse_source(BytesIO(b"not a spreadsheet"), "LocA.xlsx")

        assert exc_info.value.details["source"] == "LocA"

    def test_file_like_requires_filename(self):
        with pytest.raises(SourceParseError):
            parse_source(create_sheet_file([sheet_row("S1", "B1")]))

    def test_as_named_rows(self):
        source = parse_source(create_sheet_file([sheet_row("S1", "B1000")]), "LocA.xlsx")

        name, rows = source.as_named_rows()

        assert name == "LocA"
        assert rows is source.rows
