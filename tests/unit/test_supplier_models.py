"""
Unit tests for supplier profile and extraction profile models.

Run: pytest tests/unit/test_supplier_models.py -v
"""

import pytest

from models.supplier import (
    SupplierProfile,
    ExtractionProfile,
    ProfileKind,
    MappableField,
    BWA_RULES,
)
from exceptions import InvalidColumnMappingError


def mappings(*pairs):
    return [{"column": c, "field": f} for c, f in pairs]


class TestSupplierProfileValidation:
    """Tests for SupplierProfile mapping rules."""

    def test_valid_profile_from_stored_row(self, sample_supplier_row):
        """Should accept camelCase stored rows."""
        profile = SupplierProfile(**sample_supplier_row)

        assert profile.start_row == 2
        assert profile.field_by_column[2] is MappableField.CODE
        assert profile.field_by_column[1] is MappableField.IMAGE

    def test_missing_description_rejected(self):
        """Code and description are both required."""
        with pytest.raises(InvalidColumnMappingError):
            SupplierProfile(name="X", column_mappings=mappings((1, "code")))

    def test_code_mapped_twice_rejected(self):
        with pytest.raises(InvalidColumnMappingError):
            SupplierProfile(
                name="X",
                column_mappings=mappings((1, "code"), (2, "code"), (3, "description")),
            )

    def test_other_field_mapped_twice_rejected(self):
        with pytest.raises(InvalidColumnMappingError) as exc_info:
            SupplierProfile(
                name="X",
                column_mappings=mappings((1, "code"), (2, "description"), (3, "price"), (4, "price")),
            )

        assert exc_info.value.details["fields"] == ["price"]

    def test_skip_may_repeat(self):
        profile = SupplierProfile(
            name="X",
            column_mappings=mappings((1, "skip"), (2, "code"), (3, "description"), (4, "skip")),
        )

        assert len(profile.column_mappings) == 4

    def test_duplicate_column_rejected(self):
        with pytest.raises(InvalidColumnMappingError):
            SupplierProfile(
                name="X",
                column_mappings=mappings((1, "code"), (1, "description")),
            )

    def test_null_start_row_defaults_to_two(self):
        profile = SupplierProfile(
            name="X",
            column_mappings=mappings((1, "code"), (2, "description")),
            startRow=None,
        )

        assert profile.start_row == 2

    def test_error_status_is_422(self):
        with pytest.raises(InvalidColumnMappingError) as exc_info:
            SupplierProfile(name="X", column_mappings=[])

        assert exc_info.value.status_code == 422


class TestExtractionProfile:
    """Tests for variant selection."""

    def test_supplier_selects_column_mapped(self, sample_supplier_row):
        profile = ExtractionProfile.for_supplier(SupplierProfile(**sample_supplier_row))

        assert profile.kind is ProfileKind.COLUMN_MAPPED
        assert profile.supplier.name == "Bathroom Warehouse"

    def test_no_supplier_selects_bwa_heuristic(self):
        profile = ExtractionProfile.for_supplier(None)

        assert profile.kind is ProfileKind.HEURISTIC_BWA
        assert profile.rules.prefix_tokens == ["BWA"]

    def test_generic_has_no_prefix(self):
        profile = ExtractionProfile.generic()

        assert profile.kind is ProfileKind.HEURISTIC_GENERIC
        assert profile.rules.prefix_tokens == []

    def test_column_mapped_requires_supplier(self):
        with pytest.raises(InvalidColumnMappingError):
            ExtractionProfile(kind=ProfileKind.COLUMN_MAPPED)

    def test_rules_are_copies(self):
        """Changing one profile's rules leaves the shared defaults alone."""
        profile = ExtractionProfile.for_supplier(None)

        profile.rules.stop_words.append("EXTRA")

        assert "EXTRA" not in BWA_RULES.stop_words
