"""
Cache module for order search
Provides Redis-backed sharing of popular search terms
"""

from .manager import CacheManager
from .config import CacheConfig

__all__ = [
    'CacheManager',
    'CacheConfig'
]
