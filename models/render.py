"""
Product selection document schemas.
"""

from dataclasses import dataclass
from datetime import date as date_type, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema


class OutputFormat(str, Enum):
    """Deliverable format for an assembled document."""
    DOCX = "docx"
    PDF = "pdf"


DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

MEDIA_TYPES = {
    OutputFormat.DOCX: DOCX_MEDIA_TYPE,
    OutputFormat.PDF: PDF_MEDIA_TYPE,
}


class LineItem(BaseSchema):
    """
    One selected catalog product.

    image is inline base64 and wins over image_url when present.
    """

    category: Optional[str] = Field(None, description="Room/area, e.g. Kitchen")
    code: str = ""
    description: str = ""
    product_details: str = ""
    quantity: str = ""
    notes: str = ""
    image: Optional[str] = Field(None, description="Inline image as base64")
    image_url: Optional[str] = Field(None, description="Public image URL")
    link: Optional[str] = Field(None, description="Product sheet URL")

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        """Quantities arrive as numbers or free text ("2 + spare")."""
        if v is None:
            return ""
        return str(v)

    @property
    def usable_link(self) -> Optional[str]:
        """Link worth turning into a hyperlink, or None."""
        link = (self.link or "").strip()
        if not link or link == "#":
            return None
        return link


class RenderRequest(BaseSchema):
    """
    Header fields plus line items for one product selection document.

    Blank address and empty line_items are rejected by the assembler
    before any template work happens.
    """

    address: str = ""
    date: Optional[date_type] = None
    contact_name: str = ""
    company: str = ""
    phone_number: str = ""
    email: str = ""
    line_items: list[LineItem] = Field(default_factory=list, alias="products")
    output_format: OutputFormat = Field(OutputFormat.PDF, alias="format")

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        """Accept '', ISO dates and ISO datetimes."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.strip()[:10]).date()
            except ValueError:
                return None
        return v

    @field_validator("contact_name", "company", "phone_number", "email", mode="before")
    @classmethod
    def none_as_blank(cls, v):
        return "" if v is None else v


@dataclass
class RenderedDocument:
    """Assembled document bytes plus delivery metadata."""
    content: bytes
    filename: str
    output_format: OutputFormat
    docx_content: Optional[bytes] = None
    conversion_error: Optional[str] = None

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self.output_format]

    @property
    def degraded(self) -> bool:
        """True when PDF was requested but the DOCX is being returned."""
        return self.conversion_error is not None
