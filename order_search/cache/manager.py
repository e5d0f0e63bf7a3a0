"""
Redis Cache Manager for order search
Shares query-term popularity between processes
"""
import logging
from typing import Any, Optional, List, Tuple
import redis
from .config import CacheConfig

logger = logging.getLogger(__name__)

class CacheManager:
    """Redis-backed store for search popularity data"""

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        """Initialize cache manager with Redis client"""
        self.redis_client = redis_client
        self.config = CacheConfig()
        self.enabled = redis_client is not None

        if not self.enabled:
            logger.warning("Cache manager initialized without Redis client - caching disabled")

    # Popular query terms
    def add_popular_term(self, term: str, increment: int = 1) -> bool:
        """Add to popular terms with score increment"""
        if not self.enabled:
            return False

        try:
            self.redis_client.zincrby(self.config.POPULAR_TERMS_KEY, increment, term)
            return True
        except Exception as e:
            logger.error(f"Error adding popular term '{term}': {e}")
            return False

    def get_popular_terms(self, limit: Optional[int] = None) -> List[Tuple[str, int]]:
        """Get most popular terms with their counts, highest first"""
        if not self.enabled:
            return []

        if limit is None:
            limit = self.config.POPULAR_TERMS_SCAN

        try:
            entries = self.redis_client.zrevrange(
                self.config.POPULAR_TERMS_KEY, 0, limit - 1, withscores=True
            )
            return [(self._decode(term), int(score)) for term, score in entries]
        except Exception as e:
            logger.error(f"Error getting popular terms: {e}")
            return []

    def trim_popular_terms(self, max_size: int) -> int:
        """Drop the least popular terms beyond max_size"""
        if not self.enabled:
            return 0

        try:
            # Sorted set is ascending; keep the top max_size members
            removed = self.redis_client.zremrangebyrank(
                self.config.POPULAR_TERMS_KEY, 0, -(max_size + 1)
            )
            if removed:
                logger.info(f"Trimmed {removed} popular terms")
            return removed
        except Exception as e:
            logger.error(f"Error trimming popular terms: {e}")
            return 0

    def _decode(self, value: Any) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)
