from .search import (
    SearchField,
    FilterOperator,
    LogicalOperator,
    SortDirection,
    FilterCondition,
    SortSpec,
    SearchQuery,
    DateRangeFilter,
    NumericRangeFilter,
    Pagination,
    SearchOptions,
    AdvancedQuery,
)

__all__ = [
    "SearchField",
    "FilterOperator",
    "LogicalOperator",
    "SortDirection",
    "FilterCondition",
    "SortSpec",
    "SearchQuery",
    "DateRangeFilter",
    "NumericRangeFilter",
    "Pagination",
    "SearchOptions",
    "AdvancedQuery",
]
