"""
Error taxonomy for order search and indexing
"""
from typing import List, Optional, Sequence


class SearchError(Exception):
    """Base class for every search engine error"""


class SearchValidationError(SearchError):
    """A search query is malformed and was rejected before any index scan"""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors if errors is not None else [message]


class UnsupportedFieldError(SearchValidationError):
    """A field identifier is not part of the searchable field set"""

    def __init__(self, field: object) -> None:
        super().__init__(f"Unsupported field: {field}")
        self.field = field


class UnsupportedOperatorError(SearchValidationError):
    """An operator is not allowed for the field's type"""

    def __init__(self, field: object, operator: object) -> None:
        super().__init__(f"Unsupported operator '{operator}' for field '{field}'")
        self.field = field
        self.operator = operator


class MissingFilterValueError(SearchValidationError):
    """A value-requiring operator was given no value"""

    def __init__(self, field: object, operator: object) -> None:
        super().__init__(f"Operator '{operator}' on field '{field}' requires a value")
        self.field = field
        self.operator = operator


class InvalidFilterValueError(SearchValidationError):
    """A filter value cannot be coerced to the field's type"""

    def __init__(self, field: object, value: object, reason: str) -> None:
        super().__init__(f"Invalid value {value!r} for field '{field}': {reason}")
        self.field = field
        self.value = value
        self.reason = reason


def raise_for_errors(errors: Sequence[SearchValidationError]) -> None:
    """Raise the accumulated validation errors, if any.

    A single problem is re-raised as is so callers can catch the specific
    subclass; several problems are surfaced together.
    """
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]

    messages: List[str] = []
    for error in errors:
        messages.extend(error.errors)
    raise SearchValidationError(
        f"Invalid search query ({len(messages)} errors): " + "; ".join(messages),
        errors=messages,
    )


class IndexingError(SearchError):
    """Base class for indexing failures"""


class IndexingItemError(IndexingError):
    """A single source record could not be mapped or indexed"""

    def __init__(self, order_id: object, reason: str) -> None:
        super().__init__(f"Failed to index order {order_id}: {reason}")
        self.order_id = order_id
        self.reason = reason


class IndexingJobError(IndexingError):
    """An indexing job failed as a whole (e.g. the source was unreachable)"""

    def __init__(self, job: str, reason: str) -> None:
        super().__init__(f"Indexing job '{job}' failed: {reason}")
        self.job = job
        self.reason = reason
