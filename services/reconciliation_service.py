"""
Reconciliation service.

Classifies extracted product codes against the catalog: exact matches, or
ranked fuzzy suggestions for the operator to pick from.

Scores (maximum of the applicable rules, never summed):
    100  normalized keys equal
     80  candidate contains query            (query >= 4 chars)
     70  query contains candidate            (candidate >= 4 chars)
    30+10n token overlap, n >= 2             (+2 equal token, +1 substring token)
     40  a query token (>= 3 chars) appears anywhere in the candidate
"""

from typing import Optional
import structlog

from config import settings
from models.catalog import (
    CatalogEntry,
    MatchResult,
    MatchType,
    ReconciliationReport,
    Suggestion,
)
from utils.text_utils import normalize_code, split_code_tokens

logger = structlog.get_logger(__name__)

# Scoring weights
EXACT_SCORE = 100
CONTAINS_SCORE = 80
PARTIAL_SCORE = 70
PARTS_BASE_SCORE = 30
PARTS_POINT_SCORE = 10
SUBSTRING_SCORE = 40

MIN_CONTAINMENT_LENGTH = 4
MIN_PARTS_POINTS = 2
MIN_PART_TOKEN_LENGTH = 2
MIN_SUBSTRING_TOKEN_LENGTH = 3


def is_exact_match(query: str, candidate: str) -> bool:
    """Normalized keys equal, or the raw codes equal ignoring case."""
    if not query or not candidate:
        return False
    return (
        normalize_code(query) == normalize_code(candidate)
        or query.strip().lower() == candidate.strip().lower()
    )


def token_overlap_points(query: str, candidate: str) -> int:
    """+2 per equal token pair, +1 per pair where one token contains the other."""
    points = 0
    candidate_tokens = split_code_tokens(candidate)
    for query_token in split_code_tokens(query):
        if len(query_token) < MIN_PART_TOKEN_LENGTH:
            continue
        for candidate_token in candidate_tokens:
            if candidate_token == query_token:
                points += 2
            elif candidate_token in query_token or query_token in candidate_token:
                points += 1
    return points


def score_candidate(query: str, candidate: str) -> Optional[tuple[int, MatchType]]:
    """
    Score one catalog code against a query code.

    Returns:
        (score, match_type) for the strongest applicable rule, or None
    """
    query_key = normalize_code(query)
    candidate_key = normalize_code(candidate)
    if not query_key or not candidate_key:
        return None

    scores: list[tuple[int, MatchType]] = []

    if query_key == candidate_key:
        scores.append((EXACT_SCORE, MatchType.EXACT))

    if len(query_key) >= MIN_CONTAINMENT_LENGTH and query_key in candidate_key:
        scores.append((CONTAINS_SCORE, MatchType.CONTAINS))

    if len(candidate_key) >= MIN_CONTAINMENT_LENGTH and candidate_key in query_key:
        scores.append((PARTIAL_SCORE, MatchType.PARTIAL))

    points = token_overlap_points(query, candidate)
    if points >= MIN_PARTS_POINTS:
        scores.append((PARTS_BASE_SCORE + points * PARTS_POINT_SCORE, MatchType.PARTS))

    if any(
        len(token) >= MIN_SUBSTRING_TOKEN_LENGTH and token in candidate_key
        for token in split_code_tokens(query)
    ):
        scores.append((SUBSTRING_SCORE, MatchType.SUBSTRING))

    if not scores:
        return None

    # Strongest score wins; on equal score the earlier (stronger) rule wins
    return max(scores, key=lambda s: s[0])


def rank_suggestions(
    query: str,
    catalog: list[CatalogEntry],
    limit: int = 5,
) -> list[Suggestion]:
    """
    Fuzzy candidates for one query code.

    Sorted by score descending; equal scores keep catalog order.
    """
    scored = []
    for entry in catalog:
        result = score_candidate(query, entry.code)
        if result is None:
            continue
        score, match_type = result
        scored.append(Suggestion(entry=entry, score=score, match_type=match_type))

    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit]


class ReconciliationService:
    """
    Matches query codes against a catalog snapshot.

    The catalog is read fresh for each call unless one is passed in.
    """

    def __init__(
        self,
        catalog_service=None,
        suggestion_limit: Optional[int] = None,
        max_unmatched_for_fuzzy: Optional[int] = None,
    ):
        self._catalog_service = catalog_service
        self.suggestion_limit = (
            suggestion_limit
            if suggestion_limit is not None
            else settings.fuzzy_suggestion_limit
        )
        self.max_unmatched_for_fuzzy = (
            max_unmatched_for_fuzzy
            if max_unmatched_for_fuzzy is not None
            else settings.fuzzy_match_max_unmatched
        )

    @property
    def catalog_service(self):
        if self._catalog_service is None:
            from services.catalog_service import get_catalog_service
            self._catalog_service = get_catalog_service()
        return self._catalog_service

    def find_exact(self, query: str, catalog: list[CatalogEntry]) -> Optional[CatalogEntry]:
        """First catalog entry exactly matching the query, in catalog order."""
        for entry in catalog:
            if is_exact_match(query, entry.code):
                return entry
        return None

    def reconcile(
        self,
        codes: list[str],
        catalog: Optional[list[CatalogEntry]] = None,
    ) -> ReconciliationReport:
        """
        Reconcile query codes against the catalog.

        Args:
            codes: Query codes, in the order results should be reported
            catalog: Snapshot to match against (read from the catalog if None)

        Returns:
            ReconciliationReport with one MatchResult per query code
        """
        if catalog is None:
            catalog = self.catalog_service.list_all()

        exact: list[Optional[CatalogEntry]] = [self.find_exact(code, catalog) for code in codes]
        unmatched_count = sum(1 for entry in exact if entry is None)
        run_fuzzy = unmatched_count <= self.max_unmatched_for_fuzzy

        if not run_fuzzy:
            logger.warning(
                "fuzzy_matching_skipped",
                unmatched=unmatched_count,
                threshold=self.max_unmatched_for_fuzzy
            )

        results = []
        for code, entry in zip(codes, exact):
            if entry is not None:
                results.append(MatchResult(query_code=code, exact_match=entry))
                continue

            suggestions = (
                rank_suggestions(code, catalog, self.suggestion_limit)
                if run_fuzzy else []
            )
            results.append(MatchResult(query_code=code, suggestions=suggestions))

        report = ReconciliationReport(results=results, suggestions_skipped=not run_fuzzy)

        logger.info(
            "reconciliation_completed",
            codes=len(codes),
            catalog_size=len(catalog),
            matched=report.matched_count,
            unmatched=report.unmatched_count
        )
        return report


# Singleton instance
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
