"""
Custom exception classes for the application.

Extraction and reconciliation misses are data, not exceptions: they never
appear here.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "TEMPLATE_ERROR")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# DOCUMENT STRUCTURE ERRORS
# ===================

class DocumentStructureError(AppError):
    """
    Document internals are malformed or missing (422).

    Fatal for the current extraction; never retried.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DOCUMENT_STRUCTURE_ERROR",
            message=message,
            status_code=422,
            details=details
        )


class TemplateError(AppError):
    """Template asset missing, corrupt, or failed to render (500)."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="TEMPLATE_ERROR",
            message=message,
            status_code=500,
            details=details
        )


class PDFParseError(ValidationError):
    """PDF text could not be extracted."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="PDF_PARSE_ERROR",
            message=message,
            details=details
        )


class UnsupportedFileTypeError(ValidationError):
    """Uploaded file is not a PDF or DOCX."""

    def __init__(self, filename: str, allowed: Optional[list[str]] = None):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message="File must be a PDF or DOCX",
            details={"filename": filename, "allowed": allowed or [".pdf", ".docx"]}
        )


# ===================
# SUPPLIER PROFILE ERRORS
# ===================

class SupplierNotFoundError(NotFoundError):
    """Supplier profile not found."""

    def __init__(self, supplier_id: str):
        super().__init__(
            resource="Supplier",
            identifier=supplier_id,
            code="SUPPLIER_NOT_FOUND"
        )


class InvalidColumnMappingError(ValidationError):
    """Supplier column mappings break the code/description rules."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_COLUMN_MAPPING",
            message=message,
            details=details
        )


# ===================
# CATALOG ERRORS
# ===================

class CatalogEntryNotFoundError(NotFoundError):
    """Catalog entry not found."""

    def __init__(self, code: str):
        super().__init__(
            resource="Product",
            identifier=code,
            code="PRODUCT_NOT_FOUND"
        )


# ===================
# EXTERNAL SERVICE ERRORS
# ===================

class ConversionError(ExternalServiceError):
    """Format conversion service failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="conversion",
            message=message,
            details=details
        )


class ImageFetchError(ExternalServiceError):
    """Remote image could not be fetched."""

    def __init__(self, url: str, message: str):
        super().__init__(
            service="image_fetch",
            message=message,
            details={"url": url}
        )


class StorageError(ExternalServiceError):
    """Blob storage upload failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="storage",
            message=message,
            details=details
        )
