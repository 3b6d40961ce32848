"""
Product selection document routes.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
import structlog

from models.render import RenderRequest
from services.document_assembler_service import get_document_assembler_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()

CONVERSION_ERROR_HEADER = "X-Conversion-Error"


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}
    )


@router.post("/generate")
async def generate_document(request: RenderRequest):
    """
    Generate a product selection document.

    Returns the file as an attachment. When PDF conversion fails the Word
    document is returned instead, with the reason in X-Conversion-Error.

    Raises:
        422: Missing address or products
        500: Template missing or failed to render
    """
    try:
        service = get_document_assembler_service()
        document = await service.assemble(request)

        headers = {"Content-Disposition": f'attachment; filename="{document.filename}"'}
        if document.degraded:
            # Header values must be latin-1
            headers[CONVERSION_ERROR_HEADER] = document.conversion_error.encode(
                "latin-1", "replace"
            ).decode("latin-1").replace("\n", " ")

        return Response(
            content=document.content,
            media_type=document.media_type,
            headers=headers
        )

    except Exception as e:
        return handle_error(e)
