"""
Indexing Scheduler
Runs the named indexing jobs (incremental, full, optimize) on their intervals,
serves event-driven and operator reindex requests and reports index health
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config import SearchConfig
from ..database.repository import OrderRepository
from ..exceptions import IndexingJobError
from .index import SearchIndex
from .indexer import OrderIndexer, source_id
from .models import BulkIndexResult, HealthReport, IndexingProgress, IndexStats

logger = logging.getLogger(__name__)

INCREMENTAL_JOB = "incremental"
FULL_JOB = "full"
OPTIMIZE_JOB = "optimize"
SCHEDULED_JOBS = (INCREMENTAL_JOB, FULL_JOB, OPTIMIZE_JOB)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IndexingScheduler:
    """
    Sole writer of the search index.

    Each job type has its own lock: a scheduled tick that finds its job still
    running is skipped, while operator calls wait for it. Different job types
    may interleave because every index mutation is atomic.
    """

    def __init__(
        self,
        index: SearchIndex,
        repository: OrderRepository,
        indexer: Optional[OrderIndexer] = None,
        config: type = SearchConfig,
    ):
        self.index = index
        self.repository = repository
        self.indexer = indexer or OrderIndexer(index)
        self.config = config

        self._jobs: Dict[str, Callable[[], Awaitable[BulkIndexResult]]] = {
            INCREMENTAL_JOB: self.run_incremental,
            FULL_JOB: self.run_full,
            OPTIMIZE_JOB: self.run_optimize,
        }
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in SCHEDULED_JOBS}
        self._tasks: List[asyncio.Task] = []
        self._last_success: Dict[str, datetime] = {}

        self._stats = IndexStats()
        self._total_index_time_ms = 0.0

    # Stats
    def _reset_stats(self) -> None:
        self._stats = IndexStats()
        self._total_index_time_ms = 0.0

    def _record_batch(self, result: BulkIndexResult) -> None:
        self._stats.indexed_documents += result.indexed
        self._stats.index_errors += result.failed
        self._total_index_time_ms += result.processing_time_ms
        if self._stats.indexed_documents:
            self._stats.average_index_time_ms = self._total_index_time_ms / self._stats.indexed_documents
        self._stats.last_update_time = _utcnow()
        self._stats.total_documents = len(self.index)

    def get_stats(self) -> IndexStats:
        return self._stats.model_copy(update={"total_documents": len(self.index)})

    def get_health(self, now: Optional[datetime] = None) -> HealthReport:
        """Derive a health verdict from the current stats

        No issue is healthy, one or two issues degraded, three or more unhealthy.
        """
        stats = self.get_stats()
        now = now or _utcnow()
        issues: List[str] = []
        recommendations: List[str] = []

        if stats.total_documents == 0:
            issues.append("Search index is empty")
            recommendations.append("Run a full reindex to populate the search index")

        last_update = stats.last_update_time
        if last_update is None or (now - last_update).total_seconds() > self.config.STALE_AFTER:
            issues.append("Search index has not been updated in the last hour")
            recommendations.append("Check that the indexing scheduler is running")

        error_rate = stats.index_errors / max(stats.indexed_documents, 1)
        if error_rate > self.config.MAX_ERROR_RATE:
            issues.append(f"High indexing error rate: {error_rate:.1%}")
            recommendations.append("Review indexing error logs for orders that fail to map")

        if stats.average_index_time_ms > self.config.SLOW_INDEX_TIME_MS:
            issues.append(f"Slow average index time: {stats.average_index_time_ms:.0f}ms")
            recommendations.append("Investigate source repository latency and batch sizes")

        if not issues:
            status = "healthy"
        elif len(issues) <= 2:
            status = "degraded"
        else:
            status = "unhealthy"

        return HealthReport(status=status, issues=issues, recommendations=recommendations)

    async def get_progress(self) -> IndexingProgress:
        """Indexed share of the source orders and estimated time to finish"""
        total_orders = await self._fetch("progress", self.repository.count_all)
        indexed_orders = len(self.index)
        progress = (indexed_orders / total_orders * 100) if total_orders else 100.0
        remaining = max(total_orders - indexed_orders, 0)
        return IndexingProgress(
            total_orders=total_orders,
            indexed_orders=indexed_orders,
            progress=min(progress, 100.0),
            estimated_time_remaining_ms=remaining * self._stats.average_index_time_ms,
        )

    # Jobs
    async def _fetch(self, job: str, fetch: Callable[..., Any], *args: Any) -> Any:
        """Call the repository off the event loop"""
        try:
            return await asyncio.to_thread(fetch, *args)
        except Exception as e:
            raise IndexingJobError(job, str(e)) from e

    async def run_incremental(self) -> BulkIndexResult:
        """Upsert orders changed since the last successful incremental run"""
        started = _utcnow()
        since = self._last_success.get(
            INCREMENTAL_JOB, started - timedelta(seconds=self.config.INCREMENTAL_INTERVAL)
        )
        orders = await self._fetch(INCREMENTAL_JOB, self.repository.fetch_changed_since, since)
        result = self.indexer.bulk_index_orders(orders)
        self._record_batch(result)
        self._last_success[INCREMENTAL_JOB] = started
        return result

    async def run_full(self) -> BulkIndexResult:
        """Upsert every source order"""
        started = _utcnow()
        orders = await self._fetch(FULL_JOB, self.repository.fetch_all)
        result = self.indexer.bulk_index_orders(orders)
        self._record_batch(result)
        self._last_success[FULL_JOB] = started
        return result

    async def run_optimize(self) -> BulkIndexResult:
        """Remove documents whose source order no longer exists, then compact"""
        orders = await self._fetch(OPTIMIZE_JOB, self.repository.fetch_all)
        source_ids = {source_id(order) for order in orders}

        removed = 0
        for document_id in self.index.ids():
            if document_id not in source_ids and self.indexer.remove_order(document_id):
                removed += 1

        remaining = self.index.compact()
        self._stats.total_documents = remaining
        self._last_success[OPTIMIZE_JOB] = _utcnow()
        logger.info(f"Index optimized: removed {removed} orphaned documents, {remaining} remain")
        return BulkIndexResult(total=removed)

    async def run_job(self, name: str, wait: bool = False) -> Optional[BulkIndexResult]:
        """
        Run a named job under its lock and timeout

        Args:
            name: incremental, full or optimize
            wait: wait for a running instance instead of skipping

        Returns:
            The job result, or None when the run was skipped

        Raises:
            IndexingJobError: when the job fails or times out
        """
        if name not in self._jobs:
            raise ValueError(f"Unknown indexing job: {name}")

        lock = self._locks[name]
        if lock.locked() and not wait:
            logger.warning(f"Indexing job '{name}' is still running, skipping this run")
            return None

        async with lock:
            logger.info(f"Starting indexing job '{name}'")
            try:
                result = await asyncio.wait_for(self._jobs[name](), timeout=self.config.JOB_TIMEOUT)
            except asyncio.TimeoutError:
                raise IndexingJobError(name, f"timed out after {self.config.JOB_TIMEOUT}s") from None
            logger.info(f"Indexing job '{name}' finished")
            return result

    async def _tick(self, name: str) -> Optional[BulkIndexResult]:
        """One scheduled run; failures are logged and retried on the next tick"""
        try:
            return await self.run_job(name)
        except IndexingJobError as e:
            logger.error(f"{e}; retrying at next scheduled run")
            return None
        except Exception as e:
            logger.exception(f"Indexing job '{name}' failed unexpectedly: {e}; retrying at next scheduled run")
            return None

    async def _run_periodically(self, name: str) -> None:
        interval = self.config.get_interval_for_job(name)
        while True:
            await asyncio.sleep(interval)
            await self._tick(name)

    def start(self) -> None:
        """Schedule every job on the running event loop"""
        if self._tasks:
            logger.warning("Indexing scheduler already started")
            return
        self._tasks = [asyncio.create_task(self._run_periodically(name)) for name in SCHEDULED_JOBS]
        logger.info("Indexing scheduler started")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Indexing scheduler stopped")

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    # Event-driven and operator requests
    async def reindex_one(self, order_id: Any) -> bool:
        """
        Re-read one order and upsert it

        A missing source order leaves any indexed document in place; only the
        optimize job removes orphans.
        """
        order = await self._fetch("reindex_one", self.repository.fetch_one, order_id)
        if order is None:
            logger.warning(f"Order {order_id} not found in source, index left unchanged")
            return False

        result = self.indexer.bulk_index_orders([order])
        self._record_batch(result)
        return result.failed == 0

    def remove_one(self, order_id: Any) -> bool:
        """Drop one order from the index after it was deleted at the source"""
        removed = self.indexer.remove_order(order_id)
        self._stats.total_documents = len(self.index)
        return removed

    async def reindex_all(self) -> BulkIndexResult:
        """Run a full update now, waiting for a running one to finish

        Raises:
            IndexingJobError: when the source cannot be read
        """
        return await self.run_job(FULL_JOB, wait=True)

    async def force_reindex(self) -> BulkIndexResult:
        """
        Reset stats and rebuild the whole index from the source

        The new content is swapped in at once, so readers see either the old
        or the rebuilt index.

        Raises:
            IndexingJobError: when the source cannot be read
        """
        async with self._locks[FULL_JOB]:
            logger.info("Starting forced full reindex")
            try:
                return await asyncio.wait_for(self._rebuild(), timeout=self.config.JOB_TIMEOUT)
            except asyncio.TimeoutError:
                raise IndexingJobError("force_reindex", f"timed out after {self.config.JOB_TIMEOUT}s") from None

    async def _rebuild(self) -> BulkIndexResult:
        started = _utcnow()
        self._reset_stats()
        orders = await self._fetch("force_reindex", self.repository.fetch_all)
        documents, result = self.indexer.build_documents(orders)
        self.index.snapshot_replace(documents)
        self._record_batch(result)
        self._last_success[FULL_JOB] = started
        self._last_success[INCREMENTAL_JOB] = started
        logger.info(f"Forced reindex completed: {result.indexed} indexed, {result.failed} failed")
        return result
