"""
Supplier document parsers.

table_walker knows DOCX structure, column_mapper knows supplier columns,
text_parser works on flattened text.
"""

from parsers.table_walker import TableWalker, WalkedRow, WalkedCell
from parsers.column_mapper import (
    ColumnMapper,
    MappingOutcome,
    extract_unmapped_rows,
    is_skippable_text,
)
from parsers.text_parser import (
    HeuristicTextParser,
    find_catalog_codes_in_text,
    parse_priced_lines,
)

__all__ = [
    "TableWalker",
    "WalkedRow",
    "WalkedCell",
    "ColumnMapper",
    "MappingOutcome",
    "extract_unmapped_rows",
    "is_skippable_text",
    "HeuristicTextParser",
    "find_catalog_codes_in_text",
    "parse_priced_lines",
]
