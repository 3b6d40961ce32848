"""
Extraction result schemas.

Records are transient: produced per upload, reviewed by an operator, and
only persisted through the catalog import flow.
"""

import base64
from typing import Optional

from pydantic import Field, computed_field

from models.base import BaseSchema
from models.catalog import ReconciliationReport
from models.supplier import ProfileKind


class ExtractedRecord(BaseSchema):
    """One product row recovered from a supplier document."""

    code: str = Field(..., min_length=1, description="Supplier product code")
    description: str = Field("", description="Product name/description")
    image_bytes: Optional[bytes] = Field(None, exclude=True, repr=False)
    price: Optional[str] = None
    product_details: Optional[str] = None
    brand: Optional[str] = None
    keywords: Optional[str] = None
    link: Optional[str] = None
    area: Optional[str] = None

    @computed_field(alias="imageBase64")
    @property
    def image_base64(self) -> Optional[str]:
        """Embedded image as base64 for JSON responses."""
        if not self.image_bytes:
            return None
        return base64.b64encode(self.image_bytes).decode("ascii")


class ExtractionResult(BaseSchema):
    """
    Output of one extraction run.

    skipped_rows counts rows/lines that yielded no record (incomplete or
    letterhead/footer text); they are reported, never raised.
    """

    strategy: ProfileKind
    records: list[ExtractedRecord] = Field(default_factory=list)
    skipped_rows: int = 0
    supplier_name: Optional[str] = None

    @property
    def codes(self) -> list[str]:
        return [r.code for r in self.records]


class ParsedPdfResponse(BaseSchema):
    """Heuristic PDF parse plus reconciliation against the catalog."""

    extracted_codes: list[str] = Field(default_factory=list)
    reconciliation: ReconciliationReport = Field(default_factory=ReconciliationReport)
    page_count: int = 0
    message: Optional[str] = None
