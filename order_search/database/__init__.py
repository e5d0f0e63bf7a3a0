"""
Database module for order search
Order ORM model, connection factories and the order repository
"""

from .connection import create_tables, get_engine, get_redis, get_session_factory
from .models import Base, Order
from .repository import OrderRepository, SqlOrderRepository

__all__ = [
    'Base',
    'Order',
    'OrderRepository',
    'SqlOrderRepository',
    'create_tables',
    'get_engine',
    'get_redis',
    'get_session_factory'
]
