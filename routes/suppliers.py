"""
Supplier profile routes (read-only).
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.supplier import SupplierProfile
from services.supplier_service import get_supplier_service
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


@router.get("", response_model=list[SupplierProfile])
async def list_suppliers():
    """Supplier profiles for the extraction supplier picker."""
    try:
        return get_supplier_service().list_profiles()

    except Exception as e:
        return handle_error(e)


@router.get("/{supplier_id}", response_model=SupplierProfile)
async def get_supplier(supplier_id: str):
    """
    Get one supplier profile.

    Raises:
        404: Supplier not found
    """
    try:
        return get_supplier_service().get_profile(supplier_id)

    except Exception as e:
        return handle_error(e)
