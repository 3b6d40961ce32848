"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Document structure
    DocumentStructureError,
    TemplateError,
    PDFParseError,
    UnsupportedFileTypeError,

    # Suppliers
    SupplierNotFoundError,
    InvalidColumnMappingError,

    # Catalog
    CatalogEntryNotFoundError,

    # External services
    ConversionError,
    ImageFetchError,
    StorageError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Document structure
    "DocumentStructureError",
    "TemplateError",
    "PDFParseError",
    "UnsupportedFileTypeError",

    # Suppliers
    "SupplierNotFoundError",
    "InvalidColumnMappingError",

    # Catalog
    "CatalogEntryNotFoundError",

    # External services
    "ConversionError",
    "ImageFetchError",
    "StorageError",
]
