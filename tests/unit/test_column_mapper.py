"""
Unit tests for the supplier column mapper.

Run: pytest tests/unit/test_column_mapper.py -v
"""

import pytest

from models.supplier import SupplierProfile
from parsers.column_mapper import (
    ColumnMapper,
    extract_unmapped_rows,
    is_skippable_text,
    strip_prefix,
    clean_price,
)
from parsers.table_walker import TableWalker
from tests.factories import build_table_docx, png_bytes


def profile(*pairs, start_row=2):
    return SupplierProfile(
        name="Test Supplier",
        column_mappings=[{"column": c, "field": f} for c, f in pairs],
        start_row=start_row,
    )


class TestIsSkippableText:

    @pytest.mark.parametrize("text", [
        "", "x", "1300 555 000", "(02) 9999 1111", "sales@bwa.com",
        "bwa.com.au", "PHONE", "pty ltd", "PTYLTD", "www.",
    ])
    def test_skippable(self, text):
        assert is_skippable_text(text) is True

    @pytest.mark.parametrize("text", ["K100", "Kitchen Mixer", "Phone holder bracket"])
    def test_not_skippable(self, text):
        """Business words only match whole cells."""
        assert is_skippable_text(text) is False

    def test_extra_words(self):
        assert is_skippable_text("basins", extra_words=["BASINS"]) is True


class TestStripPrefix:

    @pytest.mark.parametrize("raw,expected", [
        ("BWA-K100", "K100"),
        ("bwa  K100", "K100"),
        ("BWA - K100", "K100"),
        ("K100", "K100"),
    ])
    def test_strips_prefix_and_separators(self, raw, expected):
        assert strip_prefix(raw) == expected

    def test_custom_tokens(self):
        assert strip_prefix("ABY-77", ["ABY"]) == "77"


class TestCleanPrice:

    def test_keeps_digits_dots_commas(self):
        assert clean_price("$1,249.00 inc GST") == "1,249.00"


class TestColumnMapper:
    """Tests for ColumnMapper.extract()"""

    def test_k100_scenario(self):
        """
        Header row, a product row and a letterhead row.

        Only the product row becomes a record; the letterhead row is skipped.
        """
        docx = build_table_docx([
            ["Code", "Description", "Price"],
            ["BWA-K100", "Kitchen Mixer", "$249.00"],
            ["PHONE", "1300 555 000", ""],
        ])
        mapper = ColumnMapper(profile((1, "code"), (2, "description"), (3, "price")))

        outcome = mapper.extract(TableWalker(docx))

        assert len(outcome.records) == 1
        record = outcome.records[0]
        assert record.code == "K100"
        assert record.description == "Kitchen Mixer"
        assert record.price == "249.00"
        assert outcome.skipped_rows == 1

    def test_every_record_has_code_and_description(self):
        docx = build_table_docx([
            ["Code", "Description"],
            ["K100", ""],
            ["", "Orphan description"],
            ["K200", "Basin"],
        ])
        mapper = ColumnMapper(profile((1, "code"), (2, "description")))

        outcome = mapper.extract(TableWalker(docx))

        assert [r.code for r in outcome.records] == ["K200"]
        assert all(r.code and r.description for r in outcome.records)
        assert outcome.skipped_rows == 2

    def test_start_row_applies_to_each_table(self):
        docx = build_table_docx([
            ["Code", "Description"],
            ["K100", "Mixer"],
        ], tables=2)
        mapper = ColumnMapper(profile((1, "code"), (2, "description")))

        outcome = mapper.extract(TableWalker(docx))

        assert [r.code for r in outcome.records] == ["K100", "K100"]

    def test_start_row_one_includes_first_row(self):
        docx = build_table_docx([["K100", "Mixer"]])
        mapper = ColumnMapper(profile((1, "code"), (2, "description"), start_row=1))

        outcome = mapper.extract(TableWalker(docx))

        assert len(outcome.records) == 1

    def test_image_and_optional_fields(self):
        image = png_bytes(0x20)
        docx = build_table_docx([
            ["Img", "Code", "Description", "Brand", "Notes"],
            [image, "K100", "Mixer", "Abey", "ignored"],
        ])
        mapper = ColumnMapper(profile(
            (1, "image"), (2, "code"), (3, "description"), (4, "brand"), (5, "skip"),
        ))

        outcome = mapper.extract(TableWalker(docx))

        record = outcome.records[0]
        assert record.image_bytes == image
        assert record.brand == "Abey"
        assert record.image_base64 is not None

    def test_image_column_without_image(self):
        docx = build_table_docx([
            ["Img", "Code", "Description"],
            ["", "K100", "Mixer"],
        ])
        mapper = ColumnMapper(profile((1, "image"), (2, "code"), (3, "description")))

        record = mapper.extract(TableWalker(docx)).records[0]

        assert record.image_bytes is None


class TestExtractUnmappedRows:
    """Tests for the no-profile table heuristic."""

    def test_prefixed_code_and_first_long_text(self):
        image = png_bytes(0x10)
        docx = build_table_docx([
            ["Image", "Name", "Code"],
            [image, "Wall Hung Vanity", "BWA-CWH66"],
            ["", "BASINS", ""],
        ])

        outcome = extract_unmapped_rows(TableWalker(docx))

        assert len(outcome.records) == 1
        assert outcome.records[0].code == "CWH66"
        assert outcome.records[0].description == "Wall Hung Vanity"
        assert outcome.records[0].image_bytes == image
        assert outcome.skipped_rows == 1

    def test_letters_then_digits_code(self):
        docx = build_table_docx([
            ["Name", "Code"],
            ["Kitchen Mixer", "KM200"],
        ])

        outcome = extract_unmapped_rows(TableWalker(docx))

        assert outcome.records[0].code == "KM200"

    def test_category_heading_name_skipped(self):
        docx = build_table_docx([
            ["Name", "Code"],
            ["TAPS", "AB100"],
        ])

        outcome = extract_unmapped_rows(TableWalker(docx))

        assert outcome.records == []
