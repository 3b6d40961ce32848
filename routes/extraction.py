"""
Extraction API routes.

Supplier document upload → extracted records, and PDF quote review →
reconciled catalog codes.
"""

from typing import Optional
from fastapi import APIRouter, UploadFile, File, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import structlog

from models.extraction import ExtractionResult, ParsedPdfResponse
from services.extraction_service import get_extraction_service
from exceptions import AppError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/extract", response_model=ExtractionResult)
async def extract_records(
    file: UploadFile = File(..., description="Supplier PDF or DOCX"),
    supplier_id: Optional[str] = Form(None, description="Supplier profile to apply"),
    generic: bool = Form(False, description="Generic heuristics when no supplier is selected")
):
    """
    Extract product records from a supplier document.

    PDFs are converted to DOCX first. Without a supplier the heuristic
    extractors are used.

    Raises:
        404: Supplier not found
        422: Unsupported file, invalid mappings, or malformed document
        503: Conversion service failure
    """
    try:
        content = await file.read()
        if not content:
            raise ValidationError("Uploaded file is empty", details={"filename": file.filename})

        service = get_extraction_service()
        return await run_in_threadpool(
            service.extract,
            content,
            filename=file.filename,
            supplier_id=supplier_id or None,
            content_type=file.content_type,
            generic=generic,
        )

    except Exception as e:
        return handle_error(e)


@router.post("/parse-pdf", response_model=ParsedPdfResponse)
async def parse_pdf(
    file: UploadFile = File(..., description="Supplier quote PDF")
):
    """
    Find catalog products referenced in a PDF.

    Returns extracted codes, exact matches and suggestions for the rest.
    """
    try:
        content = await file.read()
        if not content:
            raise ValidationError("No PDF file provided", details={"filename": file.filename})

        service = get_extraction_service()
        return await run_in_threadpool(service.parse_pdf, content, file.filename)

    except Exception as e:
        return handle_error(e)
