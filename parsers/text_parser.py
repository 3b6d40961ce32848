"""
Heuristic text parser for supplier documents without a column profile.

Works on flattened text (pdfplumber output or DOCX text), never on table
structure. Four strategies run over every non-boilerplate line and feed one
de-duplicated code list:

    1. continuation joining (codes wrapped over a line break)
    2. prefixed-category codes: "BWA A8 CWH66-1500DWM VANITY ..."
    3. labelled codes: "Code: K100", "SKU: AB-12"
    4. generic alphanumeric codes: "CWH661500", "AB-1234X"

Also provides parse_priced_lines for quote PDFs laid out as
CODE  DESCRIPTION  QTY  PRICE.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import structlog

from models.extraction import ExtractedRecord
from models.supplier import HeuristicRules, BWA_RULES
from utils.text_utils import normalize_code

logger = structlog.get_logger(__name__)

CATEGORY_TOKEN = re.compile(r"^([A-Z]\d+)\s+(.+)$", re.IGNORECASE)
CODE_WORD = re.compile(r"^[A-Z0-9][A-Z0-9\-_.]*$", re.IGNORECASE)
DIMENSION = re.compile(r"^\d{3,4}$")
GENERIC_CODE = re.compile(r"\b([A-Z]{2,}-?\d{2,}[A-Z0-9]*(?:-[A-Z0-9]+)*)\b")
CONTINUATION_TAIL = re.compile(r"[A-Z0-9][-.]$", re.IGNORECASE)
CONTINUATION_HEAD = re.compile(r"^[A-Z0-9]", re.IGNORECASE)

# Priced line layouts, most specific first
TABLE_ROW = re.compile(
    r"^([A-Z0-9][A-Z0-9\-_./]{2,30})\s{2,}(.+?)\s{2,}(\d+(?:\.\d+)?)\s{2,}\$?([\d,]+\.?\d{0,2})",
    re.IGNORECASE,
)
QTY_ROW = re.compile(
    r"^([A-Z][A-Z0-9\-_]{2,20})\s+(.{10,}?)\s+(\d+)\s+\$?([\d,]+\.?\d{2})",
    re.IGNORECASE,
)
BASIC_ROW = re.compile(
    r"^([A-Z0-9][A-Z0-9\-_./]{2,30})\s+(.+?)\s+\$?([\d,]+\.?\d{0,2})\s*$",
    re.IGNORECASE,
)
LOOSE_CODE = re.compile(r"^[A-Z][A-Z0-9\-_]{2,}", re.IGNORECASE)
LOOSE_PRICE = re.compile(r"^\$?\d[\d,]*\.?\d{0,2}$")
PRICED_HEADER_WORDS = ("product code", "description", "freight")


def join_continuations(
    lines: list[str],
    starts_record: Optional[Callable[[str], bool]] = None,
) -> list[str]:
    """
    Join lines that end mid-code ("CWH66-" / "CWH66.") with the next line.

    The next line must start with a letter or digit and must not start a new
    record.
    """
    joined: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        while (
            CONTINUATION_TAIL.search(line)
            and i + 1 < len(lines)
            and CONTINUATION_HEAD.match(lines[i + 1])
            and not (starts_record and starts_record(lines[i + 1]))
        ):
            i += 1
            line = line + lines[i]
        joined.append(line)
        i += 1
    return joined


@dataclass
class CodeCollector:
    """Ordered, de-duplicated codes; first-seen spelling wins."""
    codes: list[str] = field(default_factory=list)
    _keys: set[str] = field(default_factory=set)

    def add(self, code: str) -> bool:
        code = code.strip()
        key = normalize_code(code)
        if not key or key in self._keys:
            return False
        self._keys.add(key)
        self.codes.append(code)
        return True


class HeuristicTextParser:
    """
    Extract candidate product codes from unstructured text.

    Rules (prefix tokens, stop words, boilerplate keywords, labels) come from
    HeuristicRules so each supplier variant carries its own vocabulary.
    """

    def __init__(self, rules: Optional[HeuristicRules] = None):
        self.rules = rules or BWA_RULES
        self.stop_words = {w.upper() for w in self.rules.stop_words}
        self.boilerplate = [k.lower() for k in self.rules.boilerplate_keywords]
        self.prefix_patterns = [
            re.compile(rf"^{re.escape(token)}\s+", re.IGNORECASE)
            for token in self.rules.prefix_tokens
        ]
        # Longest label first so "Item Code" wins over "Code"
        labels = sorted(self.rules.label_names, key=len, reverse=True)
        self.label_pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(label).replace(r"\ ", r"\s*") for label in labels) + r")\.?\s*[:#]\s*(\S+)",
            re.IGNORECASE,
        ) if labels else None

    # ===================
    # LINE FILTERING
    # ===================

    def is_boilerplate(self, line: str) -> bool:
        """Header, total, tax or contact line."""
        lowered = line.lower()
        return any(keyword in lowered for keyword in self.boilerplate)

    def starts_prefixed(self, line: str) -> bool:
        return any(p.match(line) for p in self.prefix_patterns)

    def prepare_lines(self, text: str) -> list[str]:
        """Non-empty, non-boilerplate lines with wrapped codes re-joined."""
        lines = [line.strip() for line in text.splitlines()]
        lines = [line for line in lines if line and not self.is_boilerplate(line)]
        return join_continuations(lines, starts_record=self.starts_prefixed)

    # ===================
    # STRATEGIES
    # ===================

    def match_prefixed(self, line: str) -> Optional[str]:
        """
        "<prefix> <category> <code words...>" → "<category> <code>".

        Code words stop at the first stop word or non code-like word; a bare
        3-4 digit dimension ends the code but is kept as its last word.
        """
        for pattern in self.prefix_patterns:
            if not pattern.match(line):
                continue

            remaining = pattern.sub("", line, count=1).strip()
            category_match = CATEGORY_TOKEN.match(remaining)
            if not category_match:
                return None

            category = category_match.group(1).upper()
            code_words: list[str] = []
            for word in category_match.group(2).split():
                upper_word = word.upper()
                if upper_word in self.stop_words or not CODE_WORD.match(word):
                    break
                code_words.append(upper_word)
                if DIMENSION.match(word):
                    break

            if not code_words:
                return None

            code = " ".join(code_words)
            code = re.sub(r"-\s+", "-", code)
            code = re.sub(r"\s+-", "-", code)
            return f"{category} {code}"
        return None

    def match_labelled(self, line: str) -> list[str]:
        if self.label_pattern is None:
            return []
        return [m.rstrip(",;") for m in self.label_pattern.findall(line)]

    def match_generic(self, line: str) -> list[str]:
        return GENERIC_CODE.findall(line.upper())

    # ===================
    # PUBLIC API
    # ===================

    def extract_codes(self, text: str) -> list[str]:
        """
        Run every strategy over the text.

        Returns:
            Codes in first-discovery order, de-duplicated on the normalized key
        """
        collector = CodeCollector()
        lines = self.prepare_lines(text)

        prefixed = labelled = generic = 0
        for line in lines:
            prefixed_code = self.match_prefixed(line)
            if prefixed_code and collector.add(prefixed_code):
                prefixed += 1

            for code in self.match_labelled(line):
                if collector.add(code):
                    labelled += 1

            for code in self.match_generic(line):
                if collector.add(code):
                    generic += 1

        logger.info(
            "heuristic_codes_extracted",
            lines=len(lines),
            total=len(collector.codes),
            prefixed=prefixed,
            labelled=labelled,
            generic=generic,
        )
        return collector.codes


def find_catalog_codes_in_text(text: str, catalog_codes: Iterable[str]) -> list[str]:
    """
    Catalog codes that appear in the text.

    A code counts when found literally (case-insensitive) or, for codes of
    four or more significant characters, with separators ignored on both
    sides.
    """
    upper_text = text.upper()
    compact_text = normalize_code(text)

    found: list[str] = []
    seen: set[str] = set()
    for code in catalog_codes:
        if not code or code in seen:
            continue
        compact_code = normalize_code(code)
        if code.upper() in upper_text or (len(compact_code) >= 4 and compact_code in compact_text):
            seen.add(code)
            found.append(code)

    logger.debug("catalog_codes_found_in_text", count=len(found))
    return found


def parse_priced_lines(text: str) -> list[ExtractedRecord]:
    """
    Parse "CODE  DESCRIPTION  [QTY]  PRICE" lines from quote text.

    Header, total, tax and freight lines are ignored; records are
    de-duplicated by code, first wins.
    """
    records: list[ExtractedRecord] = []
    seen: set[str] = set()

    def add(code: str, description: str, price: str, notes: Optional[str] = None) -> None:
        code = code.strip().upper()
        if code in seen or not description.strip():
            return
        seen.add(code)
        records.append(ExtractedRecord(
            code=code,
            description=description.strip(),
            price=price.replace(",", "").replace("$", "").strip(),
            product_details=notes,
        ))

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        lowered = line.lower()
        if any(word in lowered for word in (*BWA_RULES.boilerplate_keywords, *PRICED_HEADER_WORDS)):
            continue

        match = TABLE_ROW.match(line)
        if match:
            add(match.group(1), match.group(2), match.group(4))
            continue

        match = QTY_ROW.match(line)
        if match:
            add(match.group(1), match.group(2), match.group(4), notes=f"Qty: {match.group(3)}")
            continue

        match = BASIC_ROW.match(line)
        if match:
            add(match.group(1), match.group(2), match.group(3))
            continue

        parts = [p for p in re.split(r"\s{2,}", line) if p]
        if len(parts) >= 3:
            potential_code, potential_price = parts[0], parts[-1]
            if LOOSE_CODE.match(potential_code) and LOOSE_PRICE.match(potential_price.replace(" ", "")):
                add(potential_code, " ".join(parts[1:-1]), potential_price.replace(" ", ""))

    logger.info("priced_lines_parsed", records=len(records))
    return records
