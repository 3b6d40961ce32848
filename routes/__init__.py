"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.extraction import router as extraction_router
from routes.reconciliation import router as reconciliation_router
from routes.documents import router as documents_router
from routes.catalog import router as catalog_router
from routes.suppliers import router as suppliers_router

__all__ = [
    "extraction_router",
    "reconciliation_router",
    "documents_router",
    "catalog_router",
    "suppliers_router",
]
