"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.supplier import (
    MappableField,
    ColumnMapping,
    SupplierProfile,
    ProfileKind,
    HeuristicRules,
    ExtractionProfile,
    BWA_RULES,
    GENERIC_RULES,
)
from models.catalog import (
    CatalogEntry,
    MatchType,
    Suggestion,
    MatchResult,
    ReconciliationReport,
    ReconcileRequest,
    ImportRecord,
    ImportRequest,
    ImportFailure,
    ImportResult,
)
from models.extraction import (
    ExtractedRecord,
    ExtractionResult,
    ParsedPdfResponse,
)
from models.render import (
    OutputFormat,
    LineItem,
    RenderRequest,
    RenderedDocument,
)

__all__ = [
    # Base
    "BaseSchema",

    # Supplier
    "MappableField",
    "ColumnMapping",
    "SupplierProfile",
    "ProfileKind",
    "HeuristicRules",
    "ExtractionProfile",
    "BWA_RULES",
    "GENERIC_RULES",

    # Catalog
    "CatalogEntry",
    "MatchType",
    "Suggestion",
    "MatchResult",
    "ReconciliationReport",
    "ReconcileRequest",
    "ImportRecord",
    "ImportRequest",
    "ImportFailure",
    "ImportResult",

    # Extraction
    "ExtractedRecord",
    "ExtractionResult",
    "ParsedPdfResponse",

    # Render
    "OutputFormat",
    "LineItem",
    "RenderRequest",
    "RenderedDocument",
]
