"""
Order Indexer
Maps source order records to search documents and writes them to the index
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..exceptions import IndexingItemError
from .index import SearchIndex
from .models import BulkIndexResult, SearchDocument

logger = logging.getLogger(__name__)


def _attr(order: Any, name: str, default: Any = None) -> Any:
    """Read a field from an ORM row or from a plain mapping"""
    if isinstance(order, dict):
        return order.get(name, default)
    return getattr(order, name, default)


def source_id(order: Any) -> str:
    """Index key of a source order"""
    return str(_attr(order, "id"))


class OrderIndexer:
    """
    Order indexer that flattens source orders into search documents
    and keeps the in-memory index in sync with them
    """

    def __init__(self, index: SearchIndex):
        """Initialize indexer with the index it writes to"""
        self.index = index

    def build_document(self, order: Any) -> SearchDocument:
        """
        Build the search document for one order

        Args:
            order: Order ORM instance or mapping with the same attribute names

        Returns:
            SearchDocument (searchable text is filled in by the index)

        Raises:
            IndexingItemError: if the order cannot be mapped
        """
        try:
            order_id = _attr(order, "id")
        except Exception as e:
            raise IndexingItemError(None, str(e)) from e
        if order_id is None:
            raise IndexingItemError(None, "order has no id")

        try:
            shipping_address = _attr(order, "shipping_address")
            return SearchDocument(
                id=str(order_id),
                order_number=_attr(order, "order_number") or "",
                customer_name=self._extract_customer_name(shipping_address),
                customer_email=self._extract_customer_email(shipping_address),
                status=_attr(order, "status"),
                payment_status=_attr(order, "payment_status"),
                fulfillment_status=_attr(order, "fulfillment_status"),
                total_amount=self._to_float(_attr(order, "total_amount")),
                created_at=_attr(order, "created_at"),
                updated_at=_attr(order, "updated_at"),
                shipping_address=shipping_address if isinstance(shipping_address, dict) else None,
                billing_address=self._as_blob(_attr(order, "billing_address")),
                notes=_attr(order, "notes") or "",
            )
        except Exception as e:
            raise IndexingItemError(order_id, str(e)) from e

    def _extract_customer_name(self, address: Any) -> str:
        if isinstance(address, dict):
            return address.get("name") or address.get("fullName") or ""
        return ""

    def _extract_customer_email(self, address: Any) -> str:
        if isinstance(address, dict):
            return address.get("email") or ""
        return ""

    def _as_blob(self, address: Any) -> Optional[Dict[str, Any]]:
        return address if isinstance(address, dict) else None

    def _to_float(self, amount: Any) -> float:
        if amount is None:
            return 0.0
        return float(amount)

    def index_order(self, order: Any) -> SearchDocument:
        """
        Index a single order

        Raises:
            IndexingItemError: if the order cannot be mapped or stored
        """
        document = self.build_document(order)
        try:
            indexed = self.index.upsert(document)
        except Exception as e:
            raise IndexingItemError(document.id, str(e)) from e
        logger.debug(f"Successfully indexed order {document.id}")
        return indexed

    def remove_order(self, order_id: Any) -> bool:
        """Remove an order from the index; absent orders are not an error"""
        removed = self.index.delete(str(order_id))
        if removed:
            logger.debug(f"Successfully removed order {order_id} from index")
        return removed

    def bulk_index_orders(self, orders: Iterable[Any]) -> BulkIndexResult:
        """
        Index orders one by one in fetch order; a failing order is recorded
        and the rest of the batch continues

        Returns:
            BulkIndexResult with processing results
        """
        start_time = time.perf_counter()
        result = BulkIndexResult()

        for order in orders:
            result.total += 1
            try:
                self.index_order(order)
                result.indexed += 1
            except Exception as e:
                self._record_failure(result, e)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Bulk indexing completed: {result.indexed} indexed, "
            f"{result.failed} failed, {result.processing_time_ms:.2f}ms"
        )
        return result

    def _record_failure(self, result: BulkIndexResult, error: Exception) -> None:
        if not isinstance(error, IndexingItemError):
            error = IndexingItemError(None, str(error))
        result.failed += 1
        result.errors.append(str(error))
        logger.error(str(error))

    def build_documents(self, orders: Iterable[Any]) -> Tuple[List[SearchDocument], BulkIndexResult]:
        """Map orders for a snapshot rebuild without touching the index"""
        start_time = time.perf_counter()
        result = BulkIndexResult()
        documents: List[SearchDocument] = []

        for order in orders:
            result.total += 1
            try:
                documents.append(self.build_document(order))
                result.indexed += 1
            except Exception as e:
                self._record_failure(result, e)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        return documents, result
