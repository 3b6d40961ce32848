"""
Unit tests for ReconciliationService and scoring.

Run: pytest tests/unit/test_reconciliation_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from models.catalog import MatchType
from services.reconciliation_service import (
    ReconciliationService,
    is_exact_match,
    score_candidate,
    rank_suggestions,
)
from tests.factories import CatalogEntryFactory


class TestIsExactMatch:

    @pytest.mark.parametrize("query,candidate", [
        ("a8 cwh66-1500dwm", "A8 CWH66-1500DWM"),
        ("K100", "k-100"),
        ("K.100", "K100"),
    ])
    def test_exact(self, query, candidate):
        assert is_exact_match(query, candidate) is True

    def test_not_exact(self):
        assert is_exact_match("K100", "K1000") is False


class TestScoreCandidate:
    """Tests for the scoring rules."""

    def test_contains(self):
        """Catalog code contains the query."""
        assert score_candidate("CWH661500DWM", "A8 CWH66-1500DWM") == (80, MatchType.CONTAINS)

    def test_partial(self):
        """Query contains the catalog code."""
        assert score_candidate("AB-1234", "B123") == (70, MatchType.PARTIAL)

    def test_parts(self):
        assert score_candidate("AB-1234", "AB-9999") == (50, MatchType.PARTS)

    def test_substring(self):
        assert score_candidate("AB-1234", "ZZ1234") == (40, MatchType.SUBSTRING)

    def test_no_relation(self):
        assert score_candidate("AB-1234", "QQ77") is None

    def test_short_query_cannot_contain(self):
        """Containment needs at least four significant characters."""
        result = score_candidate("K10", "XK10Y")

        assert result is None or result[1] is not MatchType.CONTAINS

    def test_maximum_not_sum(self):
        """Contains and token overlap both apply; only the best is kept."""
        score, match_type = score_candidate("AB-1234", "AB-1234-X")

        assert (score, match_type) == (80, MatchType.CONTAINS)


class TestRankSuggestions:

    def test_relative_ordering(self):
        """exact > contains > partial > parts > substring."""
        catalog = CatalogEntryFactory.create_batch(["ZZ1234", "AB-9999", "B123", "AB-1234-X", "QQ77"])

        suggestions = rank_suggestions("AB-1234", catalog)

        assert [s.match_type for s in suggestions] == [
            MatchType.CONTAINS, MatchType.PARTIAL, MatchType.PARTS, MatchType.SUBSTRING,
        ]
        scores = [s.score for s in suggestions]
        assert scores == sorted(scores, reverse=True)
        assert len(set(scores)) == len(scores)

    def test_ties_keep_catalog_order(self):
        catalog = CatalogEntryFactory.create_batch(["AB1234-2", "AB1234-1"])

        suggestions = rank_suggestions("AB1234", catalog)

        assert [s.entry.code for s in suggestions] == ["AB1234-2", "AB1234-1"]

    def test_capped_at_limit(self):
        catalog = CatalogEntryFactory.create_batch([f"AB1234-{i}" for i in range(8)])

        assert len(rank_suggestions("AB1234", catalog)) == 5
        assert len(rank_suggestions("AB1234", catalog, limit=3)) == 3


class TestReconcile:
    """Tests for ReconciliationService.reconcile()"""

    def make_service(self, **kwargs):
        return ReconciliationService(catalog_service=MagicMock(), **kwargs)

    def test_fuzzy_scenario(self):
        """Lossy source dropped the separators of a catalog code."""
        catalog = CatalogEntryFactory.create_batch(["A8 CWH66-1500DWM", "K100"])
        service = self.make_service()

        report = service.reconcile(["CWH661500DWM"], catalog=catalog)

        result = report.results[0]
        assert result.exact_match is None
        top = result.suggestions[0]
        assert top.entry.code == "A8 CWH66-1500DWM"
        assert top.match_type in (MatchType.CONTAINS, MatchType.PARTIAL)
        assert top.score >= 70

    def test_exact_match_has_no_suggestions(self):
        catalog = CatalogEntryFactory.create_batch(["K100", "K1000", "K100-B"])
        service = self.make_service()

        report = service.reconcile(["k-100"], catalog=catalog)

        result = report.results[0]
        assert result.exact_match.code == "K100"
        assert result.suggestions == []

    def test_suggestions_sorted_and_capped(self):
        catalog = CatalogEntryFactory.create_batch(
            ["ZZ1234", "AB-9999", "B123", "AB-1234-X"] + [f"AB1234-{i}" for i in range(6)]
        )
        service = self.make_service()

        result = service.reconcile(["AB-1234"], catalog=catalog).results[0]

        scores = [s.score for s in result.suggestions]
        assert len(scores) == 5
        assert scores == sorted(scores, reverse=True)

    def test_explicit_zero_limit_is_honoured(self):
        catalog = CatalogEntryFactory.create_batch(["AB-1234-X", "B123"])
        service = self.make_service(suggestion_limit=0)

        result = service.reconcile(["AB-1234"], catalog=catalog).results[0]

        assert service.suggestion_limit == 0
        assert result.suggestions == []

    def test_results_mirror_input_order_with_duplicates(self):
        catalog = CatalogEntryFactory.create_batch(["K100", "K200"])
        service = self.make_service()

        report = service.reconcile(["K200", "K100", "k100", "NOPE99"], catalog=catalog)

        assert [r.query_code for r in report.results] == ["K200", "K100", "k100", "NOPE99"]
        assert report.matched_count == 3
        assert report.unmatched_count == 1
        assert [e.code for e in report.matched_entries] == ["K200", "K100"]

    def test_too_many_unmatched_skips_fuzzy(self):
        catalog = CatalogEntryFactory.create_batch(["AB1234-X"])
        service = self.make_service(max_unmatched_for_fuzzy=2)

        report = service.reconcile(["AB1234", "AB12345", "AB123456"], catalog=catalog)

        assert report.suggestions_skipped is True
        assert all(r.suggestions == [] for r in report.results)

    def test_at_threshold_still_scores(self):
        catalog = CatalogEntryFactory.create_batch(["AB1234-X"])
        service = self.make_service(max_unmatched_for_fuzzy=2)

        report = service.reconcile(["AB1234", "AB12345"], catalog=catalog)

        assert report.suggestions_skipped is False
        assert report.results[0].suggestions

    def test_catalog_read_fresh_each_call(self):
        catalog_service = MagicMock()
        catalog_service.list_all.return_value = CatalogEntryFactory.create_batch(["K100"])
        service = ReconciliationService(catalog_service=catalog_service)

        service.reconcile(["K100"])
        service.reconcile(["K100"])

        assert catalog_service.list_all.call_count == 2

    def test_serializes_camel_case(self):
        catalog = CatalogEntryFactory.create_batch(["K100"])
        service = self.make_service()

        data = service.reconcile(["K100", "X9"], catalog=catalog).model_dump(by_alias=True)

        assert data["matchedCount"] == 1
        assert data["results"][0]["exactMatch"]["code"] == "K100"
        assert data["results"][1]["queryCode"] == "X9"
