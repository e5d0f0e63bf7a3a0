"""
Search Engine Core for order search
Validates queries and runs filter, text ranking, sort, pagination and
facet/suggestion stages over a point-in-time view of the index
"""

import logging
import math
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from ..cache.manager import CacheManager
from ..config import SearchConfig
from ..exceptions import SearchValidationError, UnsupportedFieldError, raise_for_errors
from ..models.search import (
    AdvancedQuery,
    FilterCondition,
    LogicalOperator,
    SearchField,
    SearchQuery,
    SortSpec,
)
from .facets import aggregate, build_date_range, build_facet_list, build_facets, group_by
from .fields import resolve_field
from .filters import FilterCompiler, Predicate
from .index import SearchIndex
from .models import (
    Facet,
    GroupBucket,
    OrderAggregation,
    PopularTerm,
    SearchDocument,
    SearchHit,
    SearchResult,
    SearchStats,
    Suggestion,
)
from .sorting import SortCompiler
from .suggestions import QueryTermHistory, SuggestionEngine
from .text import TextMatcher, highlight_document

logger = logging.getLogger(__name__)


class _Plan:
    """Normalized form of a simple or advanced query"""

    def __init__(
        self,
        text: Optional[str],
        search_fields: Optional[Sequence[str]],
        sort: Sequence[SortSpec],
        page: int,
        limit: int,
        fuzzy: bool,
        fuzzy_threshold: float,
        highlight: bool,
        facet_fields: Optional[Sequence[str]],
    ):
        self.text = text
        self.search_fields = search_fields
        self.sort = sort
        self.page = page
        self.limit = limit
        self.fuzzy = fuzzy
        self.fuzzy_threshold = fuzzy_threshold
        self.highlight = highlight
        self.facet_fields = facet_fields


class SearchEngine:
    """
    Query orchestrator over the order search index.

    The engine only reads the index; every write goes through the indexing
    scheduler.
    """

    def __init__(
        self,
        index: SearchIndex,
        cache_manager: Optional[CacheManager] = None,
        config: type = SearchConfig,
    ):
        """Initialize search engine with the index and an optional cache"""
        self.index = index
        self.config = config
        self.filter_compiler = FilterCompiler()
        self.sort_compiler = SortCompiler()
        self.term_history = QueryTermHistory(cache_manager, config)
        self.suggestion_engine = SuggestionEngine(index, self.term_history, config)

        self._stats_lock = threading.Lock()
        self._total_queries = 0
        self._total_execution_ms = 0.0

    # Validation
    def _bounds_errors(self, page: int, limit: int, fuzzy_threshold: float) -> List[SearchValidationError]:
        errors: List[SearchValidationError] = []
        if page < 1:
            errors.append(SearchValidationError(f"page must be >= 1, got {page}"))
        if limit < 1 or limit > self.config.MAX_PAGE_SIZE:
            errors.append(SearchValidationError(
                f"limit must be between 1 and {self.config.MAX_PAGE_SIZE}, got {limit}"
            ))
        if not 0 <= fuzzy_threshold <= 1:
            errors.append(SearchValidationError(
                f"fuzzy_threshold must be between 0 and 1, got {fuzzy_threshold}"
            ))
        return errors

    def _field_errors(self, fields: Optional[Sequence[str]]) -> List[SearchValidationError]:
        errors: List[SearchValidationError] = []
        for field in fields or []:
            try:
                resolve_field(field)
            except UnsupportedFieldError as e:
                errors.append(e)
        return errors

    def _check_sort(self, sort: Sequence[SortSpec]) -> None:
        for spec in sort or []:
            # Unknown sort keys fall back to createdAt DESC and are logged, never reported as errors
            self.sort_compiler.resolve_key(spec)

    def _prepare_simple(self, query: SearchQuery):
        errors = self._bounds_errors(query.page, query.limit, query.fuzzy_threshold)
        errors.extend(self._field_errors(query.search_fields))
        errors.extend(self._field_errors(query.facet_fields))
        predicates, filter_errors = self.filter_compiler.compile_each(query.filters)
        errors.extend(filter_errors)

        plan = _Plan(
            text=query.text,
            search_fields=query.search_fields,
            sort=query.sort,
            page=query.page,
            limit=query.limit,
            fuzzy=query.fuzzy,
            fuzzy_threshold=query.fuzzy_threshold,
            highlight=query.highlight,
            facet_fields=query.facet_fields,
        )
        return plan, predicates, LogicalOperator.AND, errors

    def _prepare_advanced(self, query: AdvancedQuery):
        options = query.options
        pagination = query.pagination
        errors = self._bounds_errors(pagination.page, pagination.limit, options.fuzzy_threshold)
        errors.extend(self._field_errors(query.fields))
        predicates, filter_errors = self.filter_compiler.compile_each(query.filters)
        errors.extend(filter_errors)

        # Range helpers always narrow the result, whatever the combinator
        range_predicates: List[Predicate] = []
        if query.date_range is not None:
            try:
                range_predicates.append(self.filter_compiler.date_range(
                    query.date_range.field, query.date_range.start, query.date_range.end
                ))
            except SearchValidationError as e:
                errors.append(e)
        if query.numeric_range is not None:
            try:
                range_predicates.append(self.filter_compiler.numeric_range(
                    query.numeric_range.field, query.numeric_range.min, query.numeric_range.max
                ))
            except SearchValidationError as e:
                errors.append(e)

        plan = _Plan(
            text=query.text,
            search_fields=query.fields,
            sort=query.sort,
            page=pagination.page,
            limit=pagination.limit,
            fuzzy=options.fuzzy,
            fuzzy_threshold=options.fuzzy_threshold,
            highlight=options.highlight,
            facet_fields=None,
        )
        return plan, predicates, query.logical_operator, errors, range_predicates

    def validate_query(self, query: Any) -> Dict[str, Any]:
        """Report every problem of a SearchQuery or AdvancedQuery without raising"""
        if isinstance(query, AdvancedQuery):
            _, _, _, errors, _ = self._prepare_advanced(query)
        else:
            _, _, _, errors = self._prepare_simple(query)
        self._check_sort(query.sort)

        messages: List[str] = []
        for error in errors:
            messages.extend(error.errors)
        return {"is_valid": not messages, "errors": messages}

    # Search
    def search(self, query: SearchQuery) -> SearchResult:
        """
        Run a search query

        Raises:
            SearchValidationError: every problem of the query, before any scan
        """
        plan, predicates, operator, errors = self._prepare_simple(query)
        self._raise_invalid(errors)
        predicate = self.filter_compiler.combine(predicates, operator)
        return self._execute(plan, predicate)

    def advanced_search(self, query: AdvancedQuery) -> SearchResult:
        """
        Run an advanced query: filters combined under one explicit logical
        operator, narrowed by optional date and numeric ranges

        Raises:
            SearchValidationError: every problem of the query, before any scan
        """
        plan, predicates, operator, errors, range_predicates = self._prepare_advanced(query)
        self._raise_invalid(errors)

        combined = self.filter_compiler.combine(predicates, operator)
        if range_predicates:
            combined = self.filter_compiler.combine([combined] + range_predicates, LogicalOperator.AND)
        return self._execute(plan, combined)

    def _raise_invalid(self, errors: List[SearchValidationError]) -> None:
        if errors:
            logger.warning(f"Rejected search query with {len(errors)} validation errors")
        raise_for_errors(errors)

    def _execute(self, plan: _Plan, predicate: Predicate) -> SearchResult:
        start_time = time.perf_counter()

        documents = [document for document in self.index.all() if predicate(document)]

        matcher = TextMatcher(plan.search_fields, plan.fuzzy, plan.fuzzy_threshold)
        ranked = matcher.rank(documents, plan.text)
        ranked = self.sort_compiler.sort(ranked, plan.sort)

        total = len(ranked)
        total_pages = math.ceil(total / plan.limit) if total else 0
        offset = (plan.page - 1) * plan.limit
        page_items = ranked[offset:offset + plan.limit]

        items = [
            SearchHit(
                document=item.document,
                relevance_score=item.score,
                highlighted_fields=highlight_document(item.document, plan.text) if plan.highlight else {},
            )
            for item in page_items
        ]

        matched_documents = [item.document for item in ranked]
        facet_fields = plan.facet_fields or self.config.get_default_facet_fields()

        suggestions: List[Suggestion] = []
        if plan.text and plan.text.strip():
            suggestions = self.suggestion_engine.suggest(plan.text, self.config.SEARCH_SUGGESTIONS_LIMIT)
            self.term_history.record(plan.text)

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        self._record_query(execution_time_ms)

        logger.info(
            f"Search completed: {total} matches, page {plan.page}/{total_pages}, "
            f"{execution_time_ms:.2f}ms"
        )

        return SearchResult(
            items=items,
            total=total,
            page=plan.page,
            limit=plan.limit,
            total_pages=total_pages,
            execution_time_ms=execution_time_ms,
            suggestions=suggestions,
            facets=build_facets(matched_documents, facet_fields),
            date_range=build_date_range(matched_documents),
        )

    def _record_query(self, execution_time_ms: float) -> None:
        with self._stats_lock:
            self._total_queries += 1
            self._total_execution_ms += execution_time_ms

    # Secondary operations
    def suggest(self, partial_query: str, limit: int = SearchConfig.DEFAULT_SUGGESTIONS_LIMIT) -> List[Suggestion]:
        return self.suggestion_engine.suggest(partial_query, limit)

    def _filtered(self, filters: Optional[Sequence[FilterCondition]]) -> List[SearchDocument]:
        predicate = self.filter_compiler.compile(filters or [])
        return [document for document in self.index.all() if predicate(document)]

    def facets(
        self,
        fields: Optional[Sequence[str]] = None,
        filters: Optional[Sequence[FilterCondition]] = None,
    ) -> List[Facet]:
        """Value counts per field over the documents matching the filters"""
        facet_fields = list(fields) if fields else self.config.get_default_facet_fields()
        raise_for_errors(self._field_errors(facet_fields))
        return build_facet_list(self._filtered(filters), facet_fields)

    def aggregate(self, filters: Optional[Sequence[FilterCondition]] = None) -> OrderAggregation:
        return aggregate(self._filtered(filters))

    def group_by(self, field: str, filters: Optional[Sequence[FilterCondition]] = None) -> List[GroupBucket]:
        return group_by(self._filtered(filters), field)

    def supported_operators(self, field: str) -> List[str]:
        return self.filter_compiler.supported_operators(field)

    def search_fields(self) -> List[str]:
        return [field.value for field in SearchField]

    def get_search_stats(self, last_index_update=None, top_terms: int = 10) -> SearchStats:
        """Query counters, most popular terms and index size"""
        with self._stats_lock:
            total_queries = self._total_queries
            total_ms = self._total_execution_ms

        return SearchStats(
            total_queries=total_queries,
            average_execution_time_ms=total_ms / total_queries if total_queries else 0.0,
            popular_terms=[
                PopularTerm(term=term, count=count)
                for term, count in self.term_history.popular(top_terms)
            ],
            index_size=len(self.index),
            last_index_update=last_index_update,
        )
