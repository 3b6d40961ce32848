"""
Supplier column mapper.

Applies a supplier's column → field configuration to the rows produced by
TableWalker and returns ExtractedRecord objects.

Supplier PDFs interleave letterhead and footer text with product rows inside
the same tables, so rows are filtered by is_skippable_text.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

import structlog

from models.extraction import ExtractedRecord
from models.supplier import MappableField, SupplierProfile, CATEGORY_HEADINGS
from parsers.table_walker import TableWalker, WalkedRow
from utils.text_utils import clean_text

logger = structlog.get_logger(__name__)

DEFAULT_PREFIX_TOKENS = ("BWA",)

PHONE_PATTERNS = [
    re.compile(r"\d{4}\s?\d{3}\s?\d{3}"),  # 1300 555 000
    re.compile(r"\(\d{2}\)\s?\d{4}"),  # (02) 9999
]

EMAIL_MARKERS = ("@", ".com.au")

BUSINESS_WORDS = [
    "ABN", "PTY LTD", "LIMITED", "WAREHOUSE", "PHONE", "EMAIL", "FAX", "ADDRESS", "WWW.",
]

PRICE_JUNK = re.compile(r"[^0-9.,]")

# Legacy (no profile) mode: a code looks like "BWA ..." or letters then digits
LEGACY_CODE_PATTERN = re.compile(r"^[A-Z]{2,}\d+")

TEXT_FIELDS = {
    MappableField.PRODUCT_DETAILS: "product_details",
    MappableField.BRAND: "brand",
    MappableField.KEYWORDS: "keywords",
    MappableField.LINK: "link",
    MappableField.AREA: "area",
}


def is_skippable_text(text: Optional[str], extra_words: Iterable[str] = ()) -> bool:
    """
    True for text that cannot be a product code or name.

    Catches empty/1-char text, phone numbers, emails and domains, and cells
    that are exactly a business/header word (ABN, PTY LTD, PHONE, ...).

    Args:
        text: Cell text
        extra_words: Additional whole-cell words to reject (e.g. category headings)
    """
    if not text or len(text) < 2:
        return True

    if any(p.search(text) for p in PHONE_PATTERNS):
        return True

    lowered = text.lower()
    if any(marker in lowered for marker in EMAIL_MARKERS):
        return True

    upper = text.upper()
    for word in [*BUSINESS_WORDS, *extra_words]:
        if upper == word or upper == word.replace(" ", ""):
            return True

    return False


def strip_prefix(code: str, prefix_tokens: Iterable[str] = DEFAULT_PREFIX_TOKENS) -> str:
    """
    Remove a leading supplier prefix token and the separators after it.

    "BWA-K100" → "K100", "bwa  K100" → "K100"
    """
    code = code.strip()
    upper = code.upper()
    for token in prefix_tokens:
        if token and upper.startswith(token.upper()):
            return re.sub(r"^[-\s]+", "", code[len(token):].strip())
    return code


def clean_price(text: str) -> str:
    """Keep only digits, '.' and ','."""
    return PRICE_JUNK.sub("", text)


@dataclass
class MappingOutcome:
    """Records plus the number of data rows that produced nothing."""
    records: list[ExtractedRecord] = field(default_factory=list)
    skipped_rows: int = 0


class ColumnMapper:
    """
    Turns table rows into records using one SupplierProfile.

    Usage:
        walker = TableWalker(docx_bytes)
        outcome = ColumnMapper(profile).extract(walker)
    """

    def __init__(
        self,
        profile: SupplierProfile,
        prefix_tokens: Iterable[str] = DEFAULT_PREFIX_TOKENS,
    ):
        self.profile = profile
        self.prefix_tokens = tuple(prefix_tokens)
        self.field_by_column = profile.field_by_column

    def extract(self, walker: TableWalker) -> MappingOutcome:
        outcome = MappingOutcome()

        for row in walker.walk_rows():
            # startRow is 1-based and applies to every table
            if row.row_number < self.profile.start_row:
                continue

            record = self.map_row(row, walker)
            if record is None:
                outcome.skipped_rows += 1
            else:
                outcome.records.append(record)

        logger.info(
            "column_mapping_completed",
            supplier=self.profile.name,
            tables=walker.table_count,
            records=len(outcome.records),
            skipped_rows=outcome.skipped_rows,
        )
        return outcome

    def map_row(self, row: WalkedRow, walker: TableWalker) -> Optional[ExtractedRecord]:
        """Map one row; None when code or description is missing or skippable."""
        values: dict[str, object] = {}

        for cell in row.cells:
            mapped = self.field_by_column.get(cell.column)
            if mapped is None or mapped is MappableField.SKIP:
                continue

            if mapped is MappableField.IMAGE:
                image = walker.resolve_image(cell.image_rid)
                if image:
                    values["image_bytes"] = image
                continue

            text = cell.text.strip()
            if not text:
                continue

            if mapped is MappableField.CODE:
                values["code"] = strip_prefix(text, self.prefix_tokens)
            elif mapped is MappableField.DESCRIPTION:
                values["description"] = clean_text(text)
            elif mapped is MappableField.PRICE:
                values["price"] = clean_price(text)
            else:
                values[TEXT_FIELDS[mapped]] = clean_text(text)

        code = values.get("code")
        description = values.get("description")
        if not code or not description:
            return None
        if is_skippable_text(code) or is_skippable_text(description):
            logger.debug("row_skipped", table=row.table_index, row=row.row_number, code=code)
            return None

        return ExtractedRecord(**values)


def extract_unmapped_rows(
    walker: TableWalker,
    prefix_tokens: Iterable[str] = DEFAULT_PREFIX_TOKENS,
    category_headings: Iterable[str] = CATEGORY_HEADINGS,
) -> MappingOutcome:
    """
    Table extraction without a supplier profile.

    For every row after the first: the code is the last cell starting with a
    prefix token or shaped like "AB123"; the description is the first other
    cell longer than two characters; the image is the first embedded image.
    """
    prefix_tokens = tuple(prefix_tokens)
    headings = tuple(category_headings)
    prefix_pattern = re.compile(
        "^(?:" + "|".join(re.escape(t) for t in prefix_tokens) + ")",
        re.IGNORECASE,
    ) if prefix_tokens else None

    outcome = MappingOutcome()

    for row in walker.walk_rows():
        if row.row_number < 2 or len(row.cells) < 2:
            continue

        code = ""
        name = ""
        image: Optional[bytes] = None

        for cell in row.cells:
            if cell.image_rid and image is None:
                image = walker.resolve_image(cell.image_rid)

            text = cell.text.strip()
            if not text:
                continue
            if (prefix_pattern and prefix_pattern.match(text)) or LEGACY_CODE_PATTERN.match(text):
                code = text
            elif not name and len(text) > 2:
                name = text

        code = strip_prefix(code, prefix_tokens)

        if (
            not code
            or len(name) <= 2
            or is_skippable_text(code, headings)
            or is_skippable_text(name, headings)
        ):
            outcome.skipped_rows += 1
            continue

        outcome.records.append(ExtractedRecord(code=code, description=name, image_bytes=image))

    logger.info(
        "unmapped_table_extraction_completed",
        tables=walker.table_count,
        records=len(outcome.records),
        skipped_rows=outcome.skipped_rows,
    )
    return outcome
