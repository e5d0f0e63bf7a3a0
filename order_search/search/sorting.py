"""
Sort compiler: stable multi-key ordering of scored documents
"""

import locale
import logging
from functools import cmp_to_key
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..exceptions import UnsupportedFieldError
from ..models.search import SearchField, SortDirection, SortSpec
from .fields import get_comparable_value, resolve_field
from .text import ScoredDocument

logger = logging.getLogger(__name__)

RELEVANCE_SORT_KEY = "relevance"
DEFAULT_SORT = SortSpec(field=SearchField.CREATED_AT.value, direction=SortDirection.DESC)

Extractor = Callable[[ScoredDocument], Any]
Comparator = Callable[[ScoredDocument, ScoredDocument], int]


def _compare_values(a: Any, b: Any) -> int:
    if isinstance(a, str) and isinstance(b, str):
        # Case-insensitive first, then locale collation of the raw strings
        a_key = (locale.strxfrm(a.casefold()), locale.strxfrm(a))
        b_key = (locale.strxfrm(b.casefold()), locale.strxfrm(b))
        return (a_key > b_key) - (a_key < b_key)
    try:
        return (a > b) - (a < b)
    except TypeError:
        a_text, b_text = str(a), str(b)
        return (a_text > b_text) - (a_text < b_text)


class SortCompiler:
    """Builds a comparator from an ordered list of sort specs"""

    def resolve_key(self, spec: SortSpec) -> Tuple[Extractor, bool]:
        """Resolve one sort key; an unknown field falls back to createdAt descending"""
        descending = spec.direction == SortDirection.DESC
        if spec.field == RELEVANCE_SORT_KEY:
            return (lambda item: item.score), descending

        try:
            field = resolve_field(spec.field)
        except UnsupportedFieldError:
            logger.warning(f"Unsupported sort field '{spec.field}', falling back to createdAt DESC")
            field = SearchField.CREATED_AT
            descending = True

        return (lambda item: get_comparable_value(item.document, field)), descending

    def compile(self, specs: Optional[Sequence[SortSpec]]) -> Comparator:
        keys = [self.resolve_key(spec) for spec in (specs or [DEFAULT_SORT])]

        def compare(a: ScoredDocument, b: ScoredDocument) -> int:
            for extract, descending in keys:
                a_value, b_value = extract(a), extract(b)
                if a_value is None and b_value is None:
                    continue
                # Missing values sort last in either direction
                if a_value is None:
                    return 1
                if b_value is None:
                    return -1
                result = _compare_values(a_value, b_value)
                if result:
                    return -result if descending else result
            return 0

        return compare

    def sort(self, items: Sequence[ScoredDocument], specs: Optional[Sequence[SortSpec]]) -> List[ScoredDocument]:
        """Stable sort: ties on every key keep the incoming order"""
        return sorted(items, key=cmp_to_key(self.compile(specs)))
