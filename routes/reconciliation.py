"""
Reconciliation API routes.
"""

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import structlog

from models.catalog import ReconcileRequest, ReconciliationReport
from services.reconciliation_service import get_reconciliation_service
from exceptions import AppError

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


@router.post("", response_model=ReconciliationReport)
async def reconcile_codes(request: ReconcileRequest):
    """
    Match codes against the current catalog.

    Unmatched codes carry up to five ranked suggestions.
    """
    try:
        service = get_reconciliation_service()
        return await run_in_threadpool(service.reconcile, request.codes)

    except Exception as e:
        return handle_error(e)
