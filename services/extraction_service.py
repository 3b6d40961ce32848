"""
Extraction service.

Turns an uploaded supplier document into extracted records (or candidate
codes) by dispatching on the ExtractionProfile variant:

    column_mapped      → PDF converted to DOCX, TableWalker + ColumnMapper
    heuristic_bwa      → table heuristic, falling back to text heuristics
                         (PDF text via pdfplumber when conversion fails)
    heuristic_generic  → same, without supplier prefix tokens

parse_pdf is the quote-review flow: PDF text → direct catalog scan +
heuristic codes → reconciliation.
"""

from io import BytesIO
from typing import Optional
import pdfplumber
import structlog

from exceptions import ConversionError, PDFParseError, UnsupportedFileTypeError
from models.extraction import ExtractedRecord, ExtractionResult, ParsedPdfResponse
from models.supplier import ExtractionProfile, ProfileKind
from parsers.column_mapper import ColumnMapper, extract_unmapped_rows
from parsers.table_walker import TableWalker
from parsers.text_parser import (
    CodeCollector,
    HeuristicTextParser,
    find_catalog_codes_in_text,
    parse_priced_lines,
)
from utils.text_utils import normalize_code

logger = structlog.get_logger(__name__)

PDF = "pdf"
DOCX = "docx"

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"

NO_CODES_MESSAGE = (
    "No product codes found in PDF. Make sure the products exist in your database first."
)


def detect_file_type(filename: Optional[str], content: bytes, content_type: Optional[str] = None) -> str:
    """
    "pdf" or "docx" from extension, MIME type, or magic bytes.

    Raises:
        UnsupportedFileTypeError: Anything else
    """
    name = (filename or "").lower()
    mime = (content_type or "").lower()

    if name.endswith(".pdf") or "pdf" in mime or content.startswith(PDF_MAGIC):
        return PDF
    if name.endswith(".docx") or "wordprocessingml" in mime or (
        content.startswith(ZIP_MAGIC) and not name
    ):
        return DOCX

    raise UnsupportedFileTypeError(filename or "upload")


def extract_text_from_pdf(pdf_bytes: bytes) -> tuple[str, int]:
    """
    Text of every page plus the page count.

    Raises:
        PDFParseError: If the PDF cannot be read
    """
    try:
        pages = []
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
    except Exception as e:
        logger.error("pdf_extraction_failed", error=str(e))
        raise PDFParseError(
            message=f"Failed to extract text from PDF: {str(e)}",
            details={"original_error": str(e), "pdf_size_bytes": len(pdf_bytes)}
        )

    text = "\n".join(pages)
    logger.info("pdf_text_extracted", text_length=len(text), pages=page_count)
    return text, page_count


def records_from_text(text: str, parser: HeuristicTextParser) -> list[ExtractedRecord]:
    """
    Priced quote rows first, then bare heuristic codes not already covered.
    """
    records = parse_priced_lines(text)
    seen = {normalize_code(r.code) for r in records}

    for code in parser.extract_codes(text):
        key = normalize_code(code)
        if key in seen:
            continue
        seen.add(key)
        records.append(ExtractedRecord(code=code))
    return records


class ExtractionService:
    """
    Orchestrates conversion, profile selection and the extractors.

    Collaborators are injectable; defaults are the module singletons.
    """

    def __init__(
        self,
        converter=None,
        supplier_service=None,
        catalog_service=None,
        reconciliation_service=None,
    ):
        self._converter = converter
        self._supplier_service = supplier_service
        self._catalog_service = catalog_service
        self._reconciliation_service = reconciliation_service

    # ===================
    # COLLABORATORS
    # ===================

    @property
    def converter(self):
        if self._converter is None:
            from integrations.cloudconvert import get_converter
            self._converter = get_converter()
        return self._converter

    @property
    def supplier_service(self):
        if self._supplier_service is None:
            from services.supplier_service import get_supplier_service
            self._supplier_service = get_supplier_service()
        return self._supplier_service

    @property
    def catalog_service(self):
        if self._catalog_service is None:
            from services.catalog_service import get_catalog_service
            self._catalog_service = get_catalog_service()
        return self._catalog_service

    @property
    def reconciliation_service(self):
        if self._reconciliation_service is None:
            from services.reconciliation_service import get_reconciliation_service
            self._reconciliation_service = get_reconciliation_service()
        return self._reconciliation_service

    # ===================
    # EXTRACTION
    # ===================

    def resolve_profile(self, supplier_id: Optional[str] = None, generic: bool = False) -> ExtractionProfile:
        """Supplier profile when one is selected, else a heuristic variant."""
        if supplier_id:
            return ExtractionProfile.for_supplier(self.supplier_service.get_profile(supplier_id))
        if generic:
            return ExtractionProfile.generic()
        return ExtractionProfile.for_supplier(None)

    def to_docx(self, content: bytes, file_type: str) -> bytes:
        if file_type == DOCX:
            return content
        return self.converter.convert(content, PDF, DOCX)

    def extract(
        self,
        content: bytes,
        filename: Optional[str] = None,
        supplier_id: Optional[str] = None,
        content_type: Optional[str] = None,
        generic: bool = False,
    ) -> ExtractionResult:
        """
        Extract records from an uploaded PDF or DOCX.

        Args:
            content: File bytes
            filename: Original filename (used for type detection)
            supplier_id: Supplier profile to apply
            content_type: Upload MIME type
            generic: Use generic heuristics when no supplier is selected

        Returns:
            ExtractionResult tagged with the strategy used
        """
        file_type = detect_file_type(filename, content, content_type)
        profile = self.resolve_profile(supplier_id, generic)

        logger.info(
            "extraction_started",
            filename=filename,
            file_type=file_type,
            strategy=profile.kind.value,
            supplier_id=supplier_id
        )

        if profile.kind is ProfileKind.COLUMN_MAPPED:
            walker = TableWalker(self.to_docx(content, file_type))
            result = self.extract_column_mapped(walker, profile)
        else:
            result = self.extract_heuristic_upload(content, file_type, profile)

        logger.info(
            "extraction_completed",
            filename=filename,
            strategy=result.strategy.value,
            records=len(result.records),
            skipped_rows=result.skipped_rows
        )
        return result

    def extract_column_mapped(self, walker: TableWalker, profile: ExtractionProfile) -> ExtractionResult:
        mapper = ColumnMapper(profile.supplier, prefix_tokens=profile.rules.prefix_tokens)
        outcome = mapper.extract(walker)
        return ExtractionResult(
            strategy=profile.kind,
            records=outcome.records,
            skipped_rows=outcome.skipped_rows,
            supplier_name=profile.supplier.name,
        )

    def extract_heuristic_upload(self, content: bytes, file_type: str, profile: ExtractionProfile) -> ExtractionResult:
        """
        Heuristic extraction that survives a conversion outage.

        A PDF that cannot be converted is read with pdfplumber and parsed as
        flattened text.
        """
        try:
            docx_bytes = self.to_docx(content, file_type)
        except ConversionError as e:
            logger.warning(
                "pdf_conversion_failed_using_text",
                strategy=profile.kind.value,
                error=e.message
            )
            text, _ = extract_text_from_pdf(content)
            records = records_from_text(text, HeuristicTextParser(profile.rules))
            return ExtractionResult(strategy=profile.kind, records=records)

        return self.extract_heuristic(TableWalker(docx_bytes), profile)

    def extract_heuristic(self, walker: TableWalker, profile: ExtractionProfile) -> ExtractionResult:
        """Table heuristic when the document has tables, text heuristics otherwise."""
        rules = profile.rules
        skipped_rows = 0

        if walker.table_count:
            outcome = extract_unmapped_rows(walker, rules.prefix_tokens, rules.category_headings)
            if outcome.records:
                return ExtractionResult(
                    strategy=profile.kind,
                    records=outcome.records,
                    skipped_rows=outcome.skipped_rows,
                )
            skipped_rows = outcome.skipped_rows

        records = records_from_text(walker.flatten_text(), HeuristicTextParser(rules))
        return ExtractionResult(strategy=profile.kind, records=records, skipped_rows=skipped_rows)

    # ===================
    # QUOTE REVIEW
    # ===================

    def parse_pdf(self, content: bytes, filename: Optional[str] = None) -> ParsedPdfResponse:
        """
        Find catalog products referenced by a supplier PDF.

        Codes come from a direct scan for existing catalog codes plus the
        heuristic parser; all are then reconciled against the same catalog
        snapshot.
        """
        if detect_file_type(filename, content) != PDF:
            raise UnsupportedFileTypeError(filename or "upload", allowed=[".pdf"])

        text, page_count = extract_text_from_pdf(content)
        catalog = self.catalog_service.list_all()

        direct = find_catalog_codes_in_text(text, [entry.code for entry in catalog])
        heuristic = HeuristicTextParser(ExtractionProfile.for_supplier(None).rules).extract_codes(text)

        collector = CodeCollector()
        for code in [*direct, *heuristic]:
            collector.add(code)

        logger.info(
            "pdf_codes_collected",
            filename=filename,
            direct=len(direct),
            heuristic=len(heuristic),
            total=len(collector.codes)
        )

        if not collector.codes:
            return ParsedPdfResponse(page_count=page_count, message=NO_CODES_MESSAGE)

        report = self.reconciliation_service.reconcile(collector.codes, catalog=catalog)
        return ParsedPdfResponse(
            extracted_codes=collector.codes,
            reconciliation=report,
            page_count=page_count,
        )


# Singleton instance
_extraction_service: Optional[ExtractionService] = None


def get_extraction_service() -> ExtractionService:
    """Get or create ExtractionService instance."""
    global _extraction_service
    if _extraction_service is None:
        _extraction_service = ExtractionService()
    return _extraction_service
