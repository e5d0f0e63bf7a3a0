"""
Text match engine
Tokenizes free-text queries, matches tokens against document fields
(substring or fuzzy) and computes relevance scores
"""

import re
import logging
from typing import Dict, List, NamedTuple, Optional, Sequence

from ..config import SearchConfig
from ..models.search import SearchField
from .fields import get_text_value, resolve_field
from .models import SearchDocument

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 10
PREFIX_MATCH_SCORE = 5
CONTAINS_MATCH_SCORE = 2

HIGHLIGHT_FIELDS = {
    "order_number": SearchField.ORDER_NUMBER,
    "customer_name": SearchField.CUSTOMER_NAME,
    "notes": SearchField.NOTES,
}


class ScoredDocument(NamedTuple):
    document: SearchDocument
    score: float


def tokenize(query_text: Optional[str]) -> List[str]:
    """Lower-case and split on whitespace; whitespace-only queries yield no tokens"""
    if not query_text:
        return []
    return [token for token in query_text.lower().split() if token]


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance (insert/delete/substitute cost 1)"""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(s1: str, s2: str) -> float:
    """Normalized similarity in [0, 1]: 1 - distance / longer length"""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / longest


class TextMatcher:
    """Matches query tokens against a set of document fields"""

    def __init__(
        self,
        fields: Optional[Sequence[str]] = None,
        fuzzy: bool = False,
        fuzzy_threshold: float = SearchConfig.DEFAULT_FUZZY_THRESHOLD,
    ):
        field_names = fields if fields else SearchConfig.get_default_search_fields()
        self.fields = [resolve_field(field) for field in field_names]
        self.fuzzy = fuzzy
        self.fuzzy_threshold = fuzzy_threshold

    def token_matches(self, token: str, field_value: str) -> bool:
        if self.fuzzy:
            return similarity(token, field_value) >= self.fuzzy_threshold
        return token in field_value

    def pair_score(self, token: str, field_value: str) -> int:
        """Score of a matched (token, field) pair"""
        if field_value == token:
            return EXACT_MATCH_SCORE
        if field_value.startswith(token):
            return PREFIX_MATCH_SCORE
        # plain substring hits and fuzzy-only hits share the lowest tier
        return CONTAINS_MATCH_SCORE

    def score(self, document: SearchDocument, tokens: Sequence[str]) -> Optional[int]:
        """Relevance score, or None when no (token, field) pair matches"""
        total = 0
        matched = False
        for token in tokens:
            for field in self.fields:
                field_value = get_text_value(document, field).lower()
                if self.token_matches(token, field_value):
                    matched = True
                    total += self.pair_score(token, field_value)
        return total if matched else None

    def rank(self, documents: Sequence[SearchDocument], query_text: Optional[str]) -> List[ScoredDocument]:
        """Keep matching documents ordered by descending score.

        An empty query is a no-op: every document passes with score 0 in its
        original order. Ties keep the incoming order.
        """
        tokens = tokenize(query_text)
        if not tokens:
            return [ScoredDocument(document, 0.0) for document in documents]

        candidates = []
        for document in documents:
            document_score = self.score(document, tokens)
            if document_score is not None:
                candidates.append(ScoredDocument(document, float(document_score)))

        candidates.sort(key=lambda candidate: candidate.score, reverse=True)
        logger.debug(f"Text match kept {len(candidates)} of {len(documents)} documents for {tokens}")
        return candidates


def highlight_document(document: SearchDocument, query_text: Optional[str]) -> Dict[str, str]:
    """Generate highlighted text snippets for matched terms"""
    highlights: Dict[str, str] = {}

    terms = tokenize(query_text)
    if not terms:
        return highlights

    for field_name, field in HIGHLIGHT_FIELDS.items():
        field_value = get_text_value(document, field)
        if not field_value:
            continue

        matched_terms = {term for term in terms if term in field_value.lower()}
        if not matched_terms:
            continue

        # One alternation pass, longest first, so tags are never re-highlighted
        alternation = "|".join(re.escape(term) for term in sorted(matched_terms, key=len, reverse=True))
        pattern = re.compile(f"({alternation})", re.IGNORECASE)
        highlights[field_name] = pattern.sub(r"<mark>\1</mark>", field_value)

    return highlights
