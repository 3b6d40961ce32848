"""
Catalog API routes.

Read access for the selection UI plus bulk import of reviewed records.
"""

from fastapi import APIRouter, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import structlog

from models.catalog import CatalogEntry, ImportRequest, ImportResult
from services.catalog_service import get_catalog_service
from services.import_service import get_import_service
from exceptions import AppError, CatalogEntryNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}
    )


@router.get("/search", response_model=list[CatalogEntry])
async def search_catalog(
    q: str = Query(..., min_length=1, description="Code, description, brand or keyword"),
    limit: int = Query(20, ge=1, le=100, description="Maximum results")
):
    """Search catalog products."""
    try:
        return await run_in_threadpool(get_catalog_service().search, q, limit)

    except Exception as e:
        return handle_error(e)


@router.get("/{code}", response_model=CatalogEntry)
async def get_catalog_entry(code: str):
    """
    Get a catalog product by exact code.

    Raises:
        404: Product not found
    """
    try:
        entry = await run_in_threadpool(get_catalog_service().find_by_code, code)
        if entry is None:
            raise CatalogEntryNotFoundError(code)
        return entry

    except Exception as e:
        return handle_error(e)


@router.post("/import", response_model=ImportResult, status_code=201)
async def import_records(request: ImportRequest):
    """
    Add reviewed records to the catalog.

    Records are written in small concurrent batches; per-record failures
    (duplicate code, upload error) are counted, not raised.
    """
    try:
        return await get_import_service().commit_records(request)

    except Exception as e:
        return handle_error(e)
