"""
Order search service
Wires the index, search engine and indexing scheduler into one facade
"""

import logging
from typing import List, Optional, Sequence

import redis

from .cache.manager import CacheManager
from .database.repository import OrderRepository, SqlOrderRepository
from .models.search import AdvancedQuery, FilterCondition, SearchQuery
from .search.engine import SearchEngine
from .search.index import SearchIndex
from .search.models import (
    Facet,
    HealthReport,
    IndexingProgress,
    IndexStats,
    SearchResult,
    SearchStats,
    Suggestion,
)
from .search.scheduler import IndexingScheduler

logger = logging.getLogger(__name__)


class OrderSearchService:
    """Entry point for the embedding application"""

    def __init__(self, repository: OrderRepository, redis_client: Optional[redis.Redis] = None):
        self.cache = CacheManager(redis_client)
        self.index = SearchIndex()
        self.engine = SearchEngine(self.index, self.cache)
        self.scheduler = IndexingScheduler(self.index, repository)

    async def startup(self, schedule: bool = True) -> None:
        """Build the index from the source, then start the periodic jobs"""
        logger.info("Starting order search service")
        await self.scheduler.force_reindex()
        if schedule:
            self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        self.engine.term_history.trim()
        logger.info("Order search service stopped")

    # Queries
    def search(self, query: SearchQuery) -> SearchResult:
        return self.engine.search(query)

    def advanced_search(self, query: AdvancedQuery) -> SearchResult:
        return self.engine.advanced_search(query)

    def suggest(self, partial_query: str, limit: int = 10) -> List[Suggestion]:
        return self.engine.suggest(partial_query, limit)

    def facets(
        self,
        fields: Optional[Sequence[str]] = None,
        filters: Optional[Sequence[FilterCondition]] = None,
    ) -> List[Facet]:
        return self.engine.facets(fields, filters)

    def supported_operators(self, field: str) -> List[str]:
        return self.engine.supported_operators(field)

    def search_stats(self) -> SearchStats:
        return self.engine.get_search_stats(self.scheduler.get_stats().last_update_time)

    # Indexing
    async def reindex_one(self, order_id: str) -> bool:
        return await self.scheduler.reindex_one(order_id)

    def remove_one(self, order_id: str) -> bool:
        return self.scheduler.remove_one(order_id)

    async def reindex_all(self) -> None:
        await self.scheduler.reindex_all()

    async def force_reindex(self) -> None:
        await self.scheduler.force_reindex()

    def stats(self) -> IndexStats:
        return self.scheduler.get_stats()

    def health(self) -> HealthReport:
        return self.scheduler.get_health()

    async def progress(self) -> IndexingProgress:
        return await self.scheduler.get_progress()


def create_search_service() -> OrderSearchService:
    """Build a service over the configured PostgreSQL database and Redis"""
    from .database.connection import get_redis, get_session_factory

    repository = SqlOrderRepository(get_session_factory())
    return OrderSearchService(repository, get_redis())
