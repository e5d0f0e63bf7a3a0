"""
Suggestion engine
Proposes completions from popular query terms and indexed order numbers
"""

import logging
import threading
from collections import Counter
from typing import List, Optional, Tuple

from ..cache.manager import CacheManager
from ..config import SearchConfig
from .index import SearchIndex
from .models import Suggestion
from .text import tokenize

logger = logging.getLogger(__name__)


class QueryTermHistory:
    """Frequency of previously seen query terms.

    Counts are kept locally and mirrored into a Redis sorted set when a cache
    is available, in which case Redis is the source read back.
    """

    def __init__(self, cache_manager: Optional[CacheManager] = None, config: type = SearchConfig):
        self.cache = cache_manager
        self.config = config
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    @property
    def shared(self) -> bool:
        return self.cache is not None and self.cache.enabled

    def record(self, query_text: Optional[str]) -> List[str]:
        """Count every term longer than two characters; returns the terms counted"""
        terms = [t for t in tokenize(query_text) if len(t) >= self.config.MIN_TERM_LENGTH]
        if not terms:
            return []

        max_size = self.config.TERM_HISTORY_SIZE
        with self._lock:
            self._counts.update(terms)
            self._trim_local(max_size)

        if self.shared:
            for term in terms:
                self.cache.add_popular_term(term)
            self.cache.trim_popular_terms(max_size)

        return terms

    def popular(self, limit: Optional[int] = None) -> List[Tuple[str, int]]:
        if self.shared:
            return self.cache.get_popular_terms(limit)
        with self._lock:
            return self._counts.most_common(limit)

    def _trim_local(self, max_size: int) -> None:
        # Caller holds self._lock
        if len(self._counts) > max_size:
            self._counts = Counter(dict(self._counts.most_common(max_size)))

    def trim(self) -> None:
        """Keep only the most frequent terms"""
        max_size = self.config.TERM_HISTORY_SIZE
        with self._lock:
            self._trim_local(max_size)
        if self.shared:
            self.cache.trim_popular_terms(max_size)


class SuggestionEngine:
    """Ranks suggestions for a partial query"""

    def __init__(self, index: SearchIndex, history: QueryTermHistory, config: type = SearchConfig):
        self.index = index
        self.history = history
        self.config = config

    def suggest(self, partial_query: Optional[str], limit: int = SearchConfig.DEFAULT_SUGGESTIONS_LIMIT) -> List[Suggestion]:
        """Get suggestions for a partial query of at least two characters"""
        if not partial_query or limit <= 0:
            return []

        partial = partial_query.strip().lower()
        if len(partial) < self.config.SUGGESTION_MIN_LENGTH:
            return []

        suggestions: List[Suggestion] = []

        for term, count in self.history.popular():
            if partial in term and term != partial:
                suggestions.append(Suggestion(text=term, type="popular_term", score=count))

        for document in self.index.all():
            if document.order_number and partial in document.order_number.lower():
                suggestions.append(Suggestion(text=document.order_number, type="order_number", score=1))

        suggestions.sort(key=lambda s: s.score, reverse=True)
        logger.debug(f"Generated {len(suggestions)} suggestions for '{partial}'")
        return suggestions[:limit]
