"""
Unit tests for Redis cache manager
"""
import pytest
from unittest.mock import Mock

from order_search.cache.config import CacheConfig
from order_search.cache.manager import CacheManager


class TestCacheConfig:
    """Test cache configuration"""

    def test_key_prefixes(self):
        """Test key prefixes are set correctly"""
        assert CacheConfig.SEARCH_PREFIX == "search:"
        assert CacheConfig.POPULAR_TERMS_KEY == "search:popular_terms"


class TestCacheManager:
    """Test cache manager functionality"""

    @pytest.fixture
    def mock_redis(self):
        """Mock Redis client"""
        mock_client = Mock()
        mock_client.zincrby.return_value = 1
        mock_client.zrevrange.return_value = []
        mock_client.zremrangebyrank.return_value = 0
        return mock_client

    @pytest.fixture
    def cache_manager(self, mock_redis):
        """Cache manager with mock Redis"""
        return CacheManager(mock_redis)

    @pytest.fixture
    def disabled_cache_manager(self):
        """Cache manager without Redis"""
        return CacheManager(None)

    def test_cache_manager_initialization(self, cache_manager, disabled_cache_manager):
        """Test cache manager initialization"""
        assert cache_manager.enabled is True
        assert disabled_cache_manager.enabled is False

    def test_add_popular_term(self, cache_manager, mock_redis):
        assert cache_manager.add_popular_term("shipped") is True
        mock_redis.zincrby.assert_called_once_with("search:popular_terms", 1, "shipped")

    def test_get_popular_terms_decodes_members(self, cache_manager, mock_redis):
        mock_redis.zrevrange.return_value = [(b"shipped", 3.0), ("refund", 1.0)]
        assert cache_manager.get_popular_terms(2) == [("shipped", 3), ("refund", 1)]
        mock_redis.zrevrange.assert_called_once_with("search:popular_terms", 0, 1, withscores=True)

    def test_get_popular_terms_default_scan(self, cache_manager, mock_redis):
        cache_manager.get_popular_terms()
        args = mock_redis.zrevrange.call_args[0]
        assert args[2] == CacheConfig.POPULAR_TERMS_SCAN - 1

    def test_trim_popular_terms(self, cache_manager, mock_redis):
        mock_redis.zremrangebyrank.return_value = 4
        assert cache_manager.trim_popular_terms(10) == 4
        mock_redis.zremrangebyrank.assert_called_once_with("search:popular_terms", 0, -11)

    def test_redis_errors_are_absorbed(self, cache_manager, mock_redis):
        mock_redis.zincrby.side_effect = Exception("Redis error")
        mock_redis.zrevrange.side_effect = Exception("Redis error")
        mock_redis.zremrangebyrank.side_effect = Exception("Redis error")

        assert cache_manager.add_popular_term("shipped") is False
        assert cache_manager.get_popular_terms() == []
        assert cache_manager.trim_popular_terms(10) == 0

    def test_disabled_cache_operations(self, disabled_cache_manager):
        """Test operations when cache is disabled"""
        assert disabled_cache_manager.add_popular_term("shipped") is False
        assert disabled_cache_manager.get_popular_terms() == []
        assert disabled_cache_manager.trim_popular_terms(10) == 0
