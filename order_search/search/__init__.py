"""
Search module for order search
Provides order indexing, filtering, ranking and faceted search
"""

from .index import SearchIndex
from .indexer import OrderIndexer
from .models import SearchDocument, SearchHit, SearchResult, IndexStats, HealthReport
from .engine import SearchEngine
from .filters import FilterCompiler
from .sorting import SortCompiler
from .text import TextMatcher
from .suggestions import QueryTermHistory, SuggestionEngine
from .scheduler import IndexingScheduler

__all__ = [
    "SearchIndex",
    "OrderIndexer",
    "SearchDocument",
    "SearchHit",
    "SearchResult",
    "IndexStats",
    "HealthReport",
    "SearchEngine",
    "FilterCompiler",
    "SortCompiler",
    "TextMatcher",
    "QueryTermHistory",
    "SuggestionEngine",
    "IndexingScheduler"
]
