"""
Order repository
Source-of-truth access used by the indexing scheduler
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Order

logger = logging.getLogger(__name__)


class OrderRepository(ABC):
    """Read-only view of the order store"""

    @abstractmethod
    def fetch_changed_since(self, timestamp: datetime) -> List[Order]:
        """Orders created or updated at or after the timestamp"""

    @abstractmethod
    def fetch_all(self) -> List[Order]:
        pass

    @abstractmethod
    def fetch_one(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def count_all(self) -> int:
        pass


class SqlOrderRepository(OrderRepository):
    """SQLAlchemy implementation; one short-lived session per call"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _naive_utc(self, timestamp: datetime) -> datetime:
        # Stored timestamps are naive UTC
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        return timestamp

    def fetch_changed_since(self, timestamp: datetime) -> List[Order]:
        since = self._naive_utc(timestamp)
        with self.session_factory() as session:
            stmt = (
                select(Order)
                .where(func.coalesce(Order.updated_at, Order.created_at) >= since)
                .order_by(Order.updated_at, Order.id)
            )
            orders = list(session.scalars(stmt))
        logger.debug(f"Fetched {len(orders)} orders changed since {since.isoformat()}")
        return orders

    def fetch_all(self) -> List[Order]:
        with self.session_factory() as session:
            return list(session.scalars(select(Order).order_by(Order.created_at, Order.id)))

    def fetch_one(self, order_id: str) -> Optional[Order]:
        with self.session_factory() as session:
            return session.get(Order, order_id)

    def count_all(self) -> int:
        with self.session_factory() as session:
            return session.scalar(select(func.count(Order.id))) or 0
