"""
Catalog and reconciliation schemas.

The catalog itself is owned elsewhere; these are read-only views plus the
match results produced against them.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import Field, computed_field, model_validator

from models.base import BaseSchema


class CatalogEntry(BaseSchema):
    """Read-only view of a catalog product."""

    id: str = Field(..., description="Product UUID")
    code: str = Field(..., description="Unique product code")
    description: str = Field("", description="Product description")
    image_url: Optional[str] = None
    link: Optional[str] = None
    brand: Optional[str] = None
    keywords: Optional[str] = None
    product_details: Optional[str] = None
    type_id: Optional[str] = None
    type_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_type(cls, data: Any) -> Any:
        """Supabase joins arrive as {"type": {"id": ..., "name": ...}}."""
        if isinstance(data, dict) and isinstance(data.get("type"), dict):
            data = dict(data)
            product_type = data.pop("type")
            data.setdefault("typeName", product_type.get("name"))
            data.setdefault("typeId", product_type.get("id"))
        return data


class MatchType(str, Enum):
    """How a suggestion relates to the query code, strongest first."""
    EXACT = "exact"
    CONTAINS = "contains"
    PARTIAL = "partial"
    PARTS = "parts"
    SUBSTRING = "substring"


class Suggestion(BaseSchema):
    """A ranked, non-exact candidate for an unmatched code."""

    entry: CatalogEntry
    score: int = Field(..., gt=0)
    match_type: MatchType


class MatchResult(BaseSchema):
    """
    Reconciliation outcome for one query code.

    Either exact_match is set and suggestions is empty, or there is no exact
    match and suggestions holds best-effort candidates (possibly none).
    """

    query_code: str
    exact_match: Optional[CatalogEntry] = None
    suggestions: list[Suggestion] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_exclusive(self) -> "MatchResult":
        if self.exact_match is not None and self.suggestions:
            raise ValueError("suggestions must be empty when an exact match exists")
        return self

    @property
    def matched(self) -> bool:
        return self.exact_match is not None


class ReconciliationReport(BaseSchema):
    """Results for a batch of codes, in input order."""

    results: list[MatchResult] = Field(default_factory=list)
    suggestions_skipped: bool = Field(
        False,
        description="True when too many codes were unmatched to score suggestions"
    )

    @property
    def matched(self) -> list[MatchResult]:
        return [r for r in self.results if r.matched]

    @property
    def unmatched(self) -> list[MatchResult]:
        return [r for r in self.results if not r.matched]

    @computed_field(alias="matchedCount")
    @property
    def matched_count(self) -> int:
        return len(self.matched)

    @computed_field(alias="unmatchedCount")
    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)

    @property
    def matched_entries(self) -> list[CatalogEntry]:
        """Distinct exact-matched entries, first occurrence order."""
        seen: set[str] = set()
        entries = []
        for result in self.matched:
            if result.exact_match.id not in seen:
                seen.add(result.exact_match.id)
                entries.append(result.exact_match)
        return entries


class ReconcileRequest(BaseSchema):
    """Codes to reconcile against the current catalog."""

    codes: list[str] = Field(..., min_length=1)


class ImportRecord(BaseSchema):
    """One reviewed record to add to the catalog."""

    code: str = Field(..., min_length=1)
    description: str = ""
    product_details: Optional[str] = None
    link: Optional[str] = None
    brand: Optional[str] = None
    keywords: Optional[str] = None
    image_base64: Optional[str] = Field(None, description="Image to upload, base64")


class ImportRequest(BaseSchema):
    """Bulk catalog import."""

    records: list[ImportRecord] = Field(..., min_length=1)
    type_name: str = Field("Other", description="Product type assigned to every record")


class ImportFailure(BaseSchema):
    code: str
    reason: str


class ImportResult(BaseSchema):
    """Outcome of a bulk import; failures never abort the batch."""

    created: int = 0
    failed: int = 0
    failures: list[ImportFailure] = Field(default_factory=list)
