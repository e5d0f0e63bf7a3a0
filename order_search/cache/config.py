"""
Cache configuration settings
"""
import os


class CacheConfig:
    """Configuration class for cache settings"""

    # Cache key prefixes
    SEARCH_PREFIX = "search:"
    POPULAR_TERMS_KEY = f"{SEARCH_PREFIX}popular_terms"

    # Number of popular terms read back from Redis per lookup
    POPULAR_TERMS_SCAN = int(os.getenv("POPULAR_TERMS_SCAN", "1000"))
