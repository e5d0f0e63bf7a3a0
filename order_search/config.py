"""
Search engine configuration settings
"""
import os
from typing import List


class SearchConfig:
    """Configuration class for search and indexing settings"""

    # Query bounds
    DEFAULT_PAGE_SIZE = int(os.getenv("SEARCH_DEFAULT_PAGE_SIZE", "20"))
    MAX_PAGE_SIZE = 100
    DEFAULT_FUZZY_THRESHOLD = float(os.getenv("SEARCH_FUZZY_THRESHOLD", "0.7"))

    DEFAULT_SEARCH_FIELDS = ["orderNumber", "customerName", "customerEmail", "notes"]
    DEFAULT_FACET_FIELDS = ["status", "paymentStatus", "fulfillmentStatus"]

    # Suggestions
    SUGGESTION_MIN_LENGTH = 2
    SEARCH_SUGGESTIONS_LIMIT = int(os.getenv("SEARCH_SUGGESTIONS_LIMIT", "5"))
    DEFAULT_SUGGESTIONS_LIMIT = 10
    MIN_TERM_LENGTH = 3  # terms must be longer than 2 characters
    TERM_HISTORY_SIZE = int(os.getenv("SEARCH_TERM_HISTORY_SIZE", "1000"))

    # Indexing schedule (in seconds)
    INCREMENTAL_INTERVAL = int(os.getenv("INDEX_INCREMENTAL_INTERVAL", "300"))  # 5 minutes
    FULL_INTERVAL = int(os.getenv("INDEX_FULL_INTERVAL", "3600"))  # 1 hour
    OPTIMIZE_INTERVAL = int(os.getenv("INDEX_OPTIMIZE_INTERVAL", "86400"))  # 24 hours
    JOB_TIMEOUT = int(os.getenv("INDEX_JOB_TIMEOUT", "600"))  # 10 minutes

    # Health thresholds
    STALE_AFTER = int(os.getenv("INDEX_STALE_AFTER", "3600"))  # 1 hour
    MAX_ERROR_RATE = float(os.getenv("INDEX_MAX_ERROR_RATE", "0.1"))
    SLOW_INDEX_TIME_MS = float(os.getenv("INDEX_SLOW_TIME_MS", "1000"))

    @classmethod
    def get_interval_for_job(cls, job_name: str) -> int:
        """Get schedule interval based on job name"""
        interval_map = {
            "incremental": cls.INCREMENTAL_INTERVAL,
            "full": cls.FULL_INTERVAL,
            "optimize": cls.OPTIMIZE_INTERVAL,
        }
        return interval_map.get(job_name, cls.FULL_INTERVAL)

    @classmethod
    def get_default_search_fields(cls) -> List[str]:
        return list(cls.DEFAULT_SEARCH_FIELDS)

    @classmethod
    def get_default_facet_fields(cls) -> List[str]:
        return list(cls.DEFAULT_FACET_FIELDS)
