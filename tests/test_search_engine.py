"""
Tests for the search engine query pipeline
"""
from datetime import datetime

import pytest

from order_search.exceptions import SearchValidationError, UnsupportedFieldError, UnsupportedOperatorError
from order_search.models.search import (
    AdvancedQuery,
    DateRangeFilter,
    FilterCondition,
    LogicalOperator,
    NumericRangeFilter,
    Pagination,
    SearchOptions,
    SearchQuery,
    SortSpec,
)
from order_search.search.engine import SearchEngine
from order_search.search.index import SearchIndex


class TestSearchEngine:
    """Test cases for SearchEngine"""

    def setup_method(self):
        self.index = SearchIndex()
        self.engine = SearchEngine(self.index)

    def load(self, documents):
        self.index.snapshot_replace(documents)

    def test_status_filter_returns_matching_document(self, make_document):
        self.load([make_document(id="1", order_number="ORD-2024-001", status="PENDING")])
        result = self.engine.search(SearchQuery(
            filters=[FilterCondition(field="status", operator="equals", value="PENDING")]
        ))
        assert [hit.document.id for hit in result.items] == ["1"]
        assert result.total == 1

    def test_free_text_is_case_insensitive(self, make_document):
        self.load([make_document(id="1", order_number="ORD-2024-001")])
        result = self.engine.search(SearchQuery(text="ord-2024-001"))
        assert result.total == 1
        assert result.items[0].relevance_score == 10

    def test_fuzzy_threshold(self, make_document):
        self.load([make_document(id="1", order_number="ORD-2024-001")])
        loose = self.engine.search(SearchQuery(text="0RD-2024-001", fuzzy=True, fuzzy_threshold=0.8))
        strict = self.engine.search(SearchQuery(text="0RD-2024-001", fuzzy=True, fuzzy_threshold=0.99))
        assert loose.total == 1
        assert strict.total == 0

    def test_amount_between(self, make_document):
        self.load([
            make_document(id="small", total_amount=100),
            make_document(id="large", total_amount=500),
        ])
        result = self.engine.search(SearchQuery(
            filters=[FilterCondition(field="totalAmount", operator="between", value=[200, 600])]
        ))
        assert [hit.document.id for hit in result.items] == ["large"]

    def test_pagination(self, make_document):
        self.load([make_document(id=str(i), order_number=f"ORD-{i:03d}") for i in range(45)])
        result = self.engine.search(SearchQuery(page=3, limit=20))
        assert len(result.items) == 5
        assert result.total == 45
        assert result.total_pages == 3

    def test_page_past_the_end_is_empty(self, make_document):
        self.load([make_document(id="1")])
        result = self.engine.search(SearchQuery(page=4, limit=10))
        assert result.items == []
        assert result.total == 1

    def test_total_is_independent_of_page(self, make_document):
        self.load([make_document(id=str(i)) for i in range(7)])
        totals = {self.engine.search(SearchQuery(page=page, limit=3)).total for page in (1, 2, 3)}
        assert totals == {7}

    def test_empty_index(self):
        result = self.engine.search(SearchQuery(text="anything"))
        assert result.total == 0
        assert result.total_pages == 0
        assert result.date_range is None

    def test_results_sorted_by_request(self, make_document):
        self.load([
            make_document(id="a", total_amount=30),
            make_document(id="b", total_amount=10),
            make_document(id="c", total_amount=20),
        ])
        result = self.engine.search(SearchQuery(sort=[SortSpec(field="totalAmount", direction="ASC")]))
        assert [hit.document.id for hit in result.items] == ["b", "c", "a"]

    def test_bad_sort_field_does_not_fail(self, make_document):
        self.load([
            make_document(id="old", created_at=datetime(2024, 1, 1)),
            make_document(id="new", created_at=datetime(2024, 5, 1)),
        ])
        result = self.engine.search(SearchQuery(sort=[SortSpec(field="shoeSize", direction="ASC")]))
        assert [hit.document.id for hit in result.items] == ["new", "old"]

    def test_facets_cover_matched_set(self, make_document):
        self.load([
            make_document(id="1", status="PENDING", notes="gift"),
            make_document(id="2", status="SHIPPED", notes="gift"),
            make_document(id="3", status="SHIPPED", notes="plain"),
        ])
        result = self.engine.search(SearchQuery(text="gift"))
        counts = {v.value: v.count for v in result.facets["status"]}
        assert counts == {"PENDING": 1, "SHIPPED": 1}
        assert set(result.facets) == {"status", "paymentStatus", "fulfillmentStatus"}

    def test_custom_facet_fields(self, make_document):
        self.load([make_document(id="1")])
        result = self.engine.search(SearchQuery(facet_fields=["paymentStatus"]))
        assert list(result.facets) == ["paymentStatus"]

    def test_highlighting(self, make_document):
        self.load([make_document(id="1", order_number="ORD-2024-001")])
        result = self.engine.search(SearchQuery(text="2024", highlight=True))
        assert result.items[0].highlighted_fields["order_number"] == "ORD-<mark>2024</mark>-001"

    def test_no_highlighting_by_default(self, make_document):
        self.load([make_document(id="1")])
        result = self.engine.search(SearchQuery(text="ord"))
        assert result.items[0].highlighted_fields == {}

    def test_suggestions_come_from_earlier_queries(self, make_document):
        self.load([make_document(id="1", notes="express shipping")])
        self.engine.search(SearchQuery(text="express"))
        result = self.engine.search(SearchQuery(text="expr"))
        assert [s.text for s in result.suggestions] == ["express"]


class TestQueryValidation:
    """Test query rejection and validation reports"""

    def setup_method(self):
        self.engine = SearchEngine(SearchIndex())

    def test_errors_are_reported_together(self):
        query = SearchQuery(
            page=0,
            limit=500,
            fuzzy_threshold=1.5,
            filters=[FilterCondition(field="status", operator="contains", value="X")],
        )
        with pytest.raises(SearchValidationError) as exc_info:
            self.engine.search(query)
        assert len(exc_info.value.errors) == 4

    def test_single_error_keeps_its_type(self):
        query = SearchQuery(filters=[FilterCondition(field="status", operator="greater_than", value=1)])
        with pytest.raises(UnsupportedOperatorError):
            self.engine.search(query)

    def test_unknown_search_field(self):
        with pytest.raises(UnsupportedFieldError):
            self.engine.search(SearchQuery(text="abc", search_fields=["phone"]))

    def test_limit_upper_bound_is_inclusive(self):
        result = self.engine.search(SearchQuery(limit=100))
        assert result.limit == 100

    def test_validate_query_does_not_raise(self):
        report = self.engine.validate_query(SearchQuery(page=0))
        assert report["is_valid"] is False
        assert len(report["errors"]) == 1
        assert self.engine.validate_query(SearchQuery()) == {"is_valid": True, "errors": []}

    def test_validate_advanced_query(self):
        query = AdvancedQuery(
            numeric_range=NumericRangeFilter(min=1, max=2),
            pagination=Pagination(page=1, limit=0),
        )
        report = self.engine.validate_query(query)
        assert report["is_valid"] is False

    def test_validate_query_accepts_unknown_sort_field(self, caplog):
        report = self.engine.validate_query(SearchQuery(sort=[SortSpec(field="shoeSize", direction="ASC")]))
        assert report == {"is_valid": True, "errors": []}
        assert "falling back to createdAt DESC" in caplog.text

    def test_rejected_query_is_not_counted(self):
        with pytest.raises(SearchValidationError):
            self.engine.search(SearchQuery(page=0))
        assert self.engine.get_search_stats().total_queries == 0


class TestAdvancedSearch:
    """Test the advanced query variant"""

    def setup_method(self):
        self.index = SearchIndex([])
        self.engine = SearchEngine(self.index)

    def ids(self, result):
        return sorted(hit.document.id for hit in result.items)

    def load(self, make_document):
        self.index.snapshot_replace([
            make_document(id="1", status="PENDING", total_amount=50, created_at=datetime(2024, 1, 10)),
            make_document(id="2", status="SHIPPED", total_amount=150, created_at=datetime(2024, 2, 10)),
            make_document(id="3", status="DELIVERED", total_amount=250, created_at=datetime(2024, 3, 10)),
        ])

    def test_or_combination(self, make_document):
        self.load(make_document)
        result = self.engine.advanced_search(AdvancedQuery(
            filters=[
                FilterCondition(field="status", operator="equals", value="PENDING"),
                FilterCondition(field="totalAmount", operator="greater_than", value=200),
            ],
            logical_operator=LogicalOperator.OR,
        ))
        assert self.ids(result) == ["1", "3"]

    def test_not_combination(self, make_document):
        self.load(make_document)
        result = self.engine.advanced_search(AdvancedQuery(
            filters=[FilterCondition(field="status", operator="equals", value="PENDING")],
            logical_operator=LogicalOperator.NOT,
        ))
        assert self.ids(result) == ["2", "3"]

    def test_range_helpers_narrow_results(self, make_document):
        self.load(make_document)
        result = self.engine.advanced_search(AdvancedQuery(
            date_range=DateRangeFilter(start=datetime(2024, 2, 1), end=datetime(2024, 3, 31)),
            numeric_range=NumericRangeFilter(min=100, max=200),
        ))
        assert self.ids(result) == ["2"]

    def test_options_and_pagination(self, make_document):
        self.load(make_document)
        result = self.engine.advanced_search(AdvancedQuery(
            text="ord-2024-001",
            options=SearchOptions(highlight=True),
            pagination=Pagination(page=1, limit=2),
        ))
        assert result.total == 3
        assert len(result.items) == 2
        assert result.items[0].highlighted_fields["order_number"] == "<mark>ORD-2024-001</mark>"


class TestSecondaryOperations:
    """Test facets, aggregates, metadata and stats"""

    def setup_method(self):
        self.index = SearchIndex()
        self.engine = SearchEngine(self.index)

    def test_facets_with_filters(self, make_document):
        self.index.snapshot_replace([
            make_document(id="1", status="PENDING", payment_status="PAID"),
            make_document(id="2", status="SHIPPED", payment_status="PAID"),
            make_document(id="3", status="SHIPPED", payment_status="FAILED"),
        ])
        facets = self.engine.facets(
            ["paymentStatus"],
            [FilterCondition(field="status", operator="equals", value="SHIPPED")],
        )
        assert len(facets) == 1
        assert {v.value: v.count for v in facets[0].values} == {"PAID": 1, "FAILED": 1}

    def test_facets_default_fields(self, make_document):
        self.index.upsert(make_document(id="1"))
        assert [f.field for f in self.engine.facets()] == ["status", "paymentStatus", "fulfillmentStatus"]

    def test_aggregate_and_group_by(self, make_document):
        self.index.snapshot_replace([
            make_document(id="1", status="PENDING", total_amount=10),
            make_document(id="2", status="PENDING", total_amount=30),
        ])
        assert self.engine.aggregate().total_amount_avg == 20
        buckets = self.engine.group_by("status")
        assert [(b.value, b.count, b.total_amount_sum) for b in buckets] == [("PENDING", 2, 40)]

    def test_search_fields_and_operators(self):
        assert "orderNumber" in self.engine.search_fields()
        assert len(self.engine.search_fields()) == 12
        assert "between" in self.engine.supported_operators("createdAt")

    def test_search_stats(self, make_document):
        self.index.upsert(make_document(id="1", notes="express"))
        self.engine.search(SearchQuery(text="express"))
        self.engine.search(SearchQuery(text="express"))

        stats = self.engine.get_search_stats()

        assert stats.total_queries == 2
        assert stats.index_size == 1
        assert stats.popular_terms[0].term == "express"
        assert stats.popular_terms[0].count == 2
