"""
Supplier profile schemas.

A supplier profile tells the column mapper which table column holds which
product field. Profiles are created by the admin workflow and are read-only
here.
"""

from collections import Counter
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from models.base import BaseSchema
from exceptions import InvalidColumnMappingError


class MappableField(str, Enum):
    """Product fields a table column can be mapped to."""
    CODE = "code"
    DESCRIPTION = "description"
    IMAGE = "image"
    PRICE = "price"
    PRODUCT_DETAILS = "productDetails"
    BRAND = "brand"
    KEYWORDS = "keywords"
    LINK = "link"
    AREA = "area"
    SKIP = "skip"


REQUIRED_FIELDS = (MappableField.CODE, MappableField.DESCRIPTION)


class ColumnMapping(BaseSchema):
    """One table column (1-based) assigned to a product field."""

    column: int = Field(..., ge=1, description="1-based column index")
    field: MappableField = Field(..., description="Product field for this column")


class SupplierProfile(BaseSchema):
    """
    Per-supplier extraction configuration.

    Rules:
        - code and description are each mapped exactly once
        - every other field is mapped at most once, except skip
        - a column appears in at most one mapping
    """

    id: Optional[str] = Field(None, description="Supplier UUID")
    name: str = Field(..., min_length=1, description="Supplier name")
    column_mappings: list[ColumnMapping] = Field(..., description="Column → field mappings")
    start_row: int = Field(2, ge=1, description="First data row (1-based)")
    has_header_row: bool = Field(True, description="First row is a header")

    @field_validator("start_row", mode="before")
    @classmethod
    def default_start_row(cls, v):
        """Stored profiles may carry a null start row."""
        return 2 if v is None else v

    @model_validator(mode="after")
    def check_mappings(self) -> "SupplierProfile":
        columns = Counter(m.column for m in self.column_mappings)
        duplicated_columns = sorted(c for c, n in columns.items() if n > 1)
        if duplicated_columns:
            raise InvalidColumnMappingError(
                "Each column can only be mapped once",
                details={"columns": duplicated_columns}
            )

        fields = Counter(m.field for m in self.column_mappings)
        for required in REQUIRED_FIELDS:
            if fields[required] != 1:
                raise InvalidColumnMappingError(
                    "At minimum, Product Code and Description columns must be mapped (exactly once)",
                    details={"field": required.value, "count": fields[required]}
                )

        repeated = sorted(
            f.value for f, n in fields.items()
            if n > 1 and f is not MappableField.SKIP
        )
        if repeated:
            raise InvalidColumnMappingError(
                "A field can only be mapped to one column",
                details={"fields": repeated}
            )
        return self

    @property
    def field_by_column(self) -> dict[int, MappableField]:
        """Column number → mapped field."""
        return {m.column: m.field for m in self.column_mappings}


class ProfileKind(str, Enum):
    """Extraction strategy selected for an upload."""
    COLUMN_MAPPED = "column_mapped"
    HEURISTIC_BWA = "heuristic_bwa"
    HEURISTIC_GENERIC = "heuristic_generic"


class HeuristicRules(BaseSchema):
    """
    Matching vocabulary for the heuristic extractors.

    Kept as data so new suppliers extend lists instead of code.
    """

    prefix_tokens: list[str] = Field(default_factory=list)
    stop_words: list[str] = Field(default_factory=list)
    boilerplate_keywords: list[str] = Field(default_factory=list)
    label_names: list[str] = Field(default_factory=list)
    category_headings: list[str] = Field(default_factory=list)


# Fixture/material vocabulary that ends a BWA code.
BWA_STOP_WORDS = [
    "VANITY", "TOILET", "BATH", "BASIN", "MIXER", "SPOUT",
    "SHOWER", "FILLER", "WASTE", "HOLDER", "CISTERN", "MATT",
    "SATIN", "WHITE", "GOLD", "BRASS", "CHROME", "BLACK",
    "OPTIONS", "AVAILABLE", "COLOURS", "HANDLE", "STONE", "TOP",
    "WITH", "AND", "THE", "FOR", "IN", "TO", "MM", "NO",
]

BOILERPLATE_KEYWORDS = [
    "subtotal", "total", "gst", "tax", "shipping", "page", "phone", "email", "www.",
]

LABEL_NAMES = ["Item Code", "Product Code", "Part No", "Part Number", "Code", "SKU"]

# Section headings found in supplier catalogues, never product names.
CATEGORY_HEADINGS = [
    "BASINS", "TAPS", "TOILETS", "SHOWERS", "BATHS", "VANITIES",
    "KITCHEN", "BATHROOM", "ACCESSORIES", "MIXERS", "SINKS", "MIXER",
]

BWA_RULES = HeuristicRules(
    prefix_tokens=["BWA"],
    stop_words=BWA_STOP_WORDS,
    boilerplate_keywords=BOILERPLATE_KEYWORDS,
    label_names=LABEL_NAMES,
    category_headings=CATEGORY_HEADINGS,
)

GENERIC_RULES = HeuristicRules(
    prefix_tokens=[],
    stop_words=BWA_STOP_WORDS,
    boilerplate_keywords=BOILERPLATE_KEYWORDS,
    label_names=LABEL_NAMES,
    category_headings=CATEGORY_HEADINGS,
)


class ExtractionProfile(BaseSchema):
    """
    Tagged variant choosing the extraction strategy.

    column_mapped carries a supplier profile; heuristic kinds carry rules.
    """

    kind: ProfileKind
    supplier: Optional[SupplierProfile] = None
    rules: HeuristicRules = Field(default_factory=lambda: BWA_RULES.model_copy(deep=True))

    @model_validator(mode="after")
    def check_supplier(self) -> "ExtractionProfile":
        if self.kind is ProfileKind.COLUMN_MAPPED and self.supplier is None:
            raise InvalidColumnMappingError("Column-mapped extraction requires a supplier profile")
        return self

    @classmethod
    def for_supplier(cls, supplier: Optional[SupplierProfile]) -> "ExtractionProfile":
        """Pick the variant for an optional supplier selection."""
        if supplier is not None:
            return cls(kind=ProfileKind.COLUMN_MAPPED, supplier=supplier)
        return cls(kind=ProfileKind.HEURISTIC_BWA, rules=BWA_RULES.model_copy(deep=True))

    @classmethod
    def generic(cls) -> "ExtractionProfile":
        return cls(kind=ProfileKind.HEURISTIC_GENERIC, rules=GENERIC_RULES.model_copy(deep=True))
