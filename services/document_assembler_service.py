"""
Product selection document assembler.

Pipeline for one request:
    validate → resolve images (concurrent) → render template (docxtpl)
    → inject hyperlinks → optional PDF conversion

The template is a DOCX with jinja placeholders:
    {{ address }} {{ date }} {{ contact_name }} {{ company }}
    {{ phone_number }} {{ email }}
    {%tr for category in categories %} ... {{ category.name }}
      {%tr for item in category.items %}
        {{ item.image }} {{ item.code }} {{ item.description }}
        {{ item.product_details }} {{ item.quantity }} {{ item.notes }}
        {{ item.link_marker }}
      {%tr endfor %}
    {%tr endfor %}

Hyperlinks cannot be created by the template engine, so rendering writes a
[[LINK:n]] marker per linked item and inject_hyperlinks swaps each marker
for a real w:hyperlink afterwards.
"""

import asyncio
import copy
import re
from datetime import date as date_type
from io import BytesIO
from pathlib import Path
from typing import Optional

import structlog
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu
from docxtpl import DocxTemplate, InlineImage

from config import settings
from exceptions import ConversionError, TemplateError, ValidationError
from models.render import LineItem, OutputFormat, RenderedDocument, RenderRequest
from services.image_service import ImageResolver, load_placeholder_image
from utils.text_utils import address_initials

logger = structlog.get_logger(__name__)

CATEGORY_ORDER = [
    "Kitchen",
    "Bathroom",
    "Bedroom",
    "Living Room",
    "Laundry",
    "Balcony",
    "Other",
]
FALLBACK_CATEGORY = "Other"

IMAGE_WIDTH_PX = 132
IMAGE_HEIGHT_PX = 113
EMU_PER_PX = 9525

LINK_TEXT = "Product Sheet"
LINK_COLOR = "0563C1"
LINK_MARKER = "[[LINK:{index}]]"
LINK_MARKER_PATTERN = re.compile(r"\[\[LINK:(\d+)\]\]")
RID_PATTERN = re.compile(r"^rId(\d+)$")


# ===================
# PURE HELPERS
# ===================

def canonical_category(category: Optional[str]) -> str:
    """Case-insensitive match against CATEGORY_ORDER; anything else is Other."""
    wanted = (category or "").strip().lower()
    for name in CATEGORY_ORDER:
        if name.lower() == wanted:
            return name
    return FALLBACK_CATEGORY


def group_by_category(items: list[LineItem]) -> list[tuple[str, list[int]]]:
    """
    Item indexes grouped by canonical category.

    Groups follow CATEGORY_ORDER, items keep input order within a group,
    empty groups are dropped.
    """
    groups: dict[str, list[int]] = {name: [] for name in CATEGORY_ORDER}
    for index, item in enumerate(items):
        groups[canonical_category(item.category)].append(index)
    return [(name, indexes) for name, indexes in groups.items() if indexes]


def format_display_date(value: Optional[date_type] = None) -> str:
    """'19 October 2026'; today when no date is given."""
    value = value or date_type.today()
    return f"{value.day} {value.strftime('%B %Y')}"


def build_filename(address: str, value: Optional[date_type], output_format: OutputFormat) -> str:
    """ProductSelection{address initials}{DDMMYYYY}.{ext}"""
    value = value or date_type.today()
    return f"ProductSelection{address_initials(address)}{value.strftime('%d%m%Y')}.{output_format.value}"


def validate_request(request: RenderRequest) -> None:
    """
    Reject requests that cannot produce a document.

    Raises:
        ValidationError: Blank address or no line items
    """
    if not request.address.strip():
        raise ValidationError("Address is required", details={"field": "address"})
    if not request.line_items:
        raise ValidationError("At least one product is required", details={"field": "products"})


# ===================
# HYPERLINK POST-PROCESSING
# ===================

def next_relationship_number(part) -> int:
    """One past the highest numeric rIdN used by the part."""
    highest = 0
    for rid in part.rels.keys():
        match = RID_PATTERN.match(rid)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


def _text_run(template_run, text: str):
    """Copy of a run keeping its formatting, holding only text."""
    run = copy.deepcopy(template_run)
    for child in list(run):
        if child.tag != qn("w:rPr"):
            run.remove(child)
    t = OxmlElement("w:t")
    t.set(qn("xml:space"), "preserve")
    t.text = text
    run.append(t)
    return run


def _hyperlink(rid: str):
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), rid)

    run = OxmlElement("w:r")
    rpr = OxmlElement("w:rPr")
    color = OxmlElement("w:color")
    color.set(qn("w:val"), LINK_COLOR)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    rpr.append(color)
    rpr.append(underline)
    run.append(rpr)

    t = OxmlElement("w:t")
    t.text = LINK_TEXT
    run.append(t)

    hyperlink.append(run)
    return hyperlink


def inject_hyperlinks(docx_bytes: bytes, links: list[str]) -> bytes:
    """
    Replace [[LINK:n]] markers with "Product Sheet" hyperlinks to links[n].

    Each link gets its own external relationship with a fresh rId. Markers
    whose index is out of range, or repeated, are left as text.

    Args:
        docx_bytes: Rendered document
        links: URLs in marker order

    Returns:
        Updated document bytes
    """
    if not links:
        return docx_bytes

    try:
        document = Document(BytesIO(docx_bytes))
    except Exception as e:
        raise TemplateError(
            "Rendered document could not be reopened",
            details={"original_error": str(e)}
        )

    part = document.part
    next_number = next_relationship_number(part)
    used: set[int] = set()

    for run in list(document.element.body.iter(qn("w:r"))):
        text = "".join(t.text or "" for t in run.iter(qn("w:t")))
        if "[[LINK:" not in text:
            continue

        pieces = []
        position = 0
        for match in LINK_MARKER_PATTERN.finditer(text):
            index = int(match.group(1))
            if index >= len(links) or index in used:
                continue
            used.add(index)

            if match.start() > position:
                pieces.append(_text_run(run, text[position:match.start()]))

            rid = f"rId{next_number}"
            next_number += 1
            part.rels.add_relationship(RT.HYPERLINK, links[index], rid, is_external=True)
            pieces.append(_hyperlink(rid))
            position = match.end()

        if not pieces:
            continue
        if position < len(text):
            pieces.append(_text_run(run, text[position:]))

        parent = run.getparent()
        insert_at = parent.index(run)
        parent.remove(run)
        for offset, element in enumerate(pieces):
            parent.insert(insert_at + offset, element)

    missing = len(links) - len(used)
    if missing:
        logger.warning("hyperlink_markers_missing", expected=len(links), injected=len(used))

    output = BytesIO()
    document.save(output)

    logger.debug("hyperlinks_injected", count=len(used))
    return output.getvalue()


# ===================
# ASSEMBLER
# ===================

class DocumentAssemblerService:
    """
    Builds product selection documents.

    Dependencies are injectable so tests can pass an in-memory template, a
    resolver on a mock transport and a fake converter.
    """

    def __init__(
        self,
        template_bytes: Optional[bytes] = None,
        placeholder_image: Optional[bytes] = None,
        image_resolver: Optional[ImageResolver] = None,
        converter=None,
    ):
        self._template_bytes = template_bytes
        self.placeholder_image = placeholder_image or load_placeholder_image()
        self.image_resolver = image_resolver or ImageResolver()
        self._converter = converter

    @property
    def template_bytes(self) -> bytes:
        if self._template_bytes is None:
            path = Path(settings.template_path)
            try:
                self._template_bytes = path.read_bytes()
            except OSError as e:
                logger.error("template_not_found", path=str(path), error=str(e))
                raise TemplateError(
                    "Template file not found",
                    details={"path": str(path)}
                )
        return self._template_bytes

    @property
    def converter(self):
        if self._converter is None:
            from integrations.cloudconvert import get_converter
            self._converter = get_converter()
        return self._converter

    def build_context(self, request: RenderRequest, images: list[InlineImage]) -> tuple[dict, list[str]]:
        """
        Template context plus link URLs in marker order.

        Args:
            request: Validated render request
            images: One InlineImage per line item, same order
        """
        links: list[str] = []
        categories = []

        for name, indexes in group_by_category(request.line_items):
            rows = []
            for index in indexes:
                item = request.line_items[index]
                marker = ""
                if item.usable_link:
                    marker = LINK_MARKER.format(index=len(links))
                    links.append(item.usable_link)

                rows.append({
                    "image": images[index],
                    "code": item.code,
                    "description": item.description,
                    "product_details": item.product_details,
                    "quantity": item.quantity,
                    "notes": item.notes,
                    "link_marker": marker,
                })
            categories.append({"name": name.upper(), "items": rows})

        context = {
            "address": request.address.strip(),
            "date": format_display_date(request.date),
            "contact_name": request.contact_name,
            "company": request.company,
            "phone_number": request.phone_number,
            "email": request.email,
            "categories": categories,
        }
        return context, links

    def render(self, request: RenderRequest, image_blobs: list[bytes]) -> tuple[bytes, list[str]]:
        """
        Fill the template.

        Returns:
            (docx bytes with link markers, link URLs in marker order)

        Raises:
            TemplateError: Template unreadable or rendering failed
        """
        try:
            tpl = DocxTemplate(BytesIO(self.template_bytes))
            tpl.init_docx()
        except TemplateError:
            raise
        except Exception as e:
            logger.error("template_open_failed", error=str(e))
            raise TemplateError(
                "Template file is corrupted",
                details={"original_error": str(e)}
            )

        images = [
            InlineImage(
                tpl,
                image_descriptor=BytesIO(blob),
                width=Emu(IMAGE_WIDTH_PX * EMU_PER_PX),
                height=Emu(IMAGE_HEIGHT_PX * EMU_PER_PX),
            )
            for blob in image_blobs
        ]
        context, links = self.build_context(request, images)

        try:
            tpl.render(context, autoescape=True)
            output = BytesIO()
            tpl.save(output)
        except Exception as e:
            logger.error(
                "template_render_failed",
                error=str(e),
                error_type=type(e).__name__
            )
            raise TemplateError(
                "Template rendering failed",
                details={"error_type": type(e).__name__, "original_error": str(e)}
            )

        return output.getvalue(), links

    async def assemble(self, request: RenderRequest) -> RenderedDocument:
        """
        Produce the deliverable for a render request.

        PDF conversion failures degrade to the DOCX with conversion_error set.
        """
        validate_request(request)

        logger.info(
            "document_assembly_started",
            items=len(request.line_items),
            output_format=request.output_format.value
        )

        image_blobs = await self.image_resolver.resolve_all(request.line_items, self.placeholder_image)
        docx_bytes, links = await asyncio.to_thread(self.render, request, image_blobs)
        docx_bytes = await asyncio.to_thread(inject_hyperlinks, docx_bytes, links)

        docx_name = build_filename(request.address, request.date, OutputFormat.DOCX)

        if request.output_format is OutputFormat.DOCX:
            logger.info("document_assembled", filename=docx_name, links=len(links))
            return RenderedDocument(
                content=docx_bytes,
                filename=docx_name,
                output_format=OutputFormat.DOCX,
                docx_content=docx_bytes,
            )

        try:
            pdf_bytes = await asyncio.to_thread(self.converter.convert, docx_bytes, "docx", "pdf")
        except ConversionError as e:
            logger.warning(
                "pdf_conversion_failed_returning_docx",
                filename=docx_name,
                error=e.message
            )
            return RenderedDocument(
                content=docx_bytes,
                filename=docx_name,
                output_format=OutputFormat.DOCX,
                docx_content=docx_bytes,
                conversion_error=e.message,
            )

        pdf_name = build_filename(request.address, request.date, OutputFormat.PDF)
        logger.info("document_assembled", filename=pdf_name, links=len(links))
        return RenderedDocument(
            content=pdf_bytes,
            filename=pdf_name,
            output_format=OutputFormat.PDF,
            docx_content=docx_bytes,
        )


# Singleton instance
_document_assembler_service: Optional[DocumentAssemblerService] = None


def get_document_assembler_service() -> DocumentAssemblerService:
    """Get or create DocumentAssemblerService instance."""
    global _document_assembler_service
    if _document_assembler_service is None:
        _document_assembler_service = DocumentAssemblerService()
    return _document_assembler_service
