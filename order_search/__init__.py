"""
Order search: in-memory order indexing, filtering and ranked search
"""

from .config import SearchConfig
from .exceptions import (
    SearchError,
    SearchValidationError,
    UnsupportedFieldError,
    UnsupportedOperatorError,
    IndexingError,
    IndexingItemError,
    IndexingJobError,
)
from .service import OrderSearchService, create_search_service

__all__ = [
    "SearchConfig",
    "SearchError",
    "SearchValidationError",
    "UnsupportedFieldError",
    "UnsupportedOperatorError",
    "IndexingError",
    "IndexingItemError",
    "IndexingJobError",
    "OrderSearchService",
    "create_search_service"
]
