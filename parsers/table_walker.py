"""
DOCX table walker.

Walks tables → rows → cells → embedded images of a Word document without
knowing what any column means. Field semantics live in column_mapper.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterator, Optional

import structlog
from docx import Document
from docx.table import _Cell

from exceptions import DocumentStructureError

logger = structlog.get_logger(__name__)

# DrawingML pictures, then legacy VML pictures (common in converted PDFs)
IMAGE_REF_XPATHS = (
    ".//a:blip/@r:embed",
    './/*[local-name()="imagedata"]/@*[local-name()="id"]',
)


@dataclass
class WalkedCell:
    """One table cell: 1-based column, flattened text, first image reference."""
    column: int
    text: str
    image_rid: Optional[str] = None


@dataclass
class WalkedRow:
    """One table row with its cells, left to right."""
    table_index: int
    row_number: int  # 1-based within its table
    cells: list[WalkedCell] = field(default_factory=list)

    def cell(self, column: int) -> Optional[WalkedCell]:
        for c in self.cells:
            if c.column == column:
                return c
        return None


class TableWalker:
    """
    Read-only view over the tables of one DOCX package.

    Raises DocumentStructureError when the package cannot be opened, has no
    main document part, or the document has no body.
    """

    def __init__(self, docx_bytes: bytes):
        try:
            self.document = Document(BytesIO(docx_bytes))
        except Exception as e:
            logger.error("docx_open_failed", error=str(e), error_type=type(e).__name__)
            raise DocumentStructureError(
                message="Document has no readable main text part (word/document.xml)",
                details={"original_error": str(e), "size_bytes": len(docx_bytes)}
            )

        self.body = self.document.element.body
        if self.body is None:
            raise DocumentStructureError(
                message="No body found in document",
                details={"part": "word/document.xml"}
            )

    @property
    def table_count(self) -> int:
        return len(self.document.tables)

    def walk_rows(self) -> Iterator[WalkedRow]:
        """
        Yield every row of every top-level table, in document order.

        Cells are the row's w:tc elements, so a horizontally merged cell
        counts once.
        """
        for table_index, table in enumerate(self.document.tables):
            for row_index, tr in enumerate(table._tbl.tr_lst):
                cells = [
                    self._walk_cell(_Cell(tc, table), column)
                    for column, tc in enumerate(tr.tc_lst, start=1)
                ]
                yield WalkedRow(
                    table_index=table_index,
                    row_number=row_index + 1,
                    cells=cells,
                )

    def _walk_cell(self, cell: _Cell, column: int) -> WalkedCell:
        text = " ".join(p.text for p in cell.paragraphs).strip()
        return WalkedCell(
            column=column,
            text=text,
            image_rid=self._find_image_rid(cell),
        )

    @staticmethod
    def _find_image_rid(cell: _Cell) -> Optional[str]:
        for xpath in IMAGE_REF_XPATHS:
            refs = cell._tc.xpath(xpath)
            if refs:
                return str(refs[0])
        return None

    def resolve_image(self, rid: Optional[str]) -> Optional[bytes]:
        """
        Raw bytes of the media part behind an image relationship.

        Missing or non-media relationships return None.
        """
        if not rid:
            return None

        part = self.document.part.related_parts.get(rid)
        if part is None or "/media/" not in str(part.partname):
            logger.debug("image_relationship_missing", rid=rid)
            return None
        return part.blob

    def flatten_text(self) -> str:
        """
        Document text as lines: body paragraphs, then one line per table row
        (cells joined by two spaces).
        """
        lines = [p.text for p in self.document.paragraphs]
        for row in self.walk_rows():
            lines.append("  ".join(c.text for c in row.cells if c.text))
        return "\n".join(line for line in lines if line.strip())
