"""
Business logic services.

Each service handles one domain area.
"""

from services.catalog_service import CatalogService, get_catalog_service
from services.supplier_service import SupplierService, get_supplier_service
from services.reconciliation_service import (
    ReconciliationService,
    get_reconciliation_service,
    score_candidate,
    rank_suggestions,
)
from services.image_service import ImageResolver, load_placeholder_image
from services.document_assembler_service import (
    DocumentAssemblerService,
    get_document_assembler_service,
    inject_hyperlinks,
)
from services.extraction_service import ExtractionService, get_extraction_service
from services.import_service import ImportService, get_import_service

__all__ = [
    "CatalogService",
    "get_catalog_service",
    "SupplierService",
    "get_supplier_service",
    "ReconciliationService",
    "get_reconciliation_service",
    "score_candidate",
    "rank_suggestions",
    "ImageResolver",
    "load_placeholder_image",
    "DocumentAssemblerService",
    "get_document_assembler_service",
    "inject_hyperlinks",
    "ExtractionService",
    "get_extraction_service",
    "ImportService",
    "get_import_service",
]
