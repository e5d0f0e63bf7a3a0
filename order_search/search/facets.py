"""
Facet and aggregation engine
Counts value breakdowns and computes amount/date aggregates over a result set
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import UnsupportedFieldError
from ..models.search import SearchField
from .fields import FIELD_TYPES, FieldType, get_comparable_value, get_value, resolve_field
from .models import (
    DateRangeSummary,
    Facet,
    FacetValue,
    GroupBucket,
    OrderAggregation,
    SearchDocument,
)

GROUPABLE_TYPES = {FieldType.ENUM, FieldType.DATE}


class FacetBuilder:
    """Counts exact field values for one field"""

    def __init__(self, field: SearchField):
        self.field = field
        self._counts: Dict[Any, int] = {}

    def add(self, document: SearchDocument) -> None:
        value = get_comparable_value(document, self.field)
        self._counts[value] = self._counts.get(value, 0) + 1

    def build(self) -> List[FacetValue]:
        # sorted() is stable, so equal counts keep first-seen order
        sorted_values = sorted(self._counts.items(), key=lambda x: x[1], reverse=True)
        return [FacetValue(value=value, count=count) for value, count in sorted_values]


def build_facets(documents: Sequence[SearchDocument], fields: Sequence[Any]) -> Dict[str, List[FacetValue]]:
    """Group the given result set on each field and count.

    This counts the current result set only; it does not remove a facet's own
    filter before counting.
    """
    builders = [FacetBuilder(resolve_field(field)) for field in fields]
    for document in documents:
        for builder in builders:
            builder.add(document)
    return {builder.field.value: builder.build() for builder in builders}


def build_facet_list(documents: Sequence[SearchDocument], fields: Sequence[Any]) -> List[Facet]:
    counts = build_facets(documents, fields)
    return [Facet(field=field, values=values) for field, values in counts.items()]


def build_date_range(documents: Sequence[SearchDocument]) -> Optional[DateRangeSummary]:
    dates = [value for value in (get_value(d, SearchField.CREATED_AT) for d in documents) if value is not None]
    if not dates:
        return None
    return DateRangeSummary(min=min(dates), max=max(dates))


def aggregate(documents: Sequence[SearchDocument]) -> OrderAggregation:
    amounts = [a for a in (get_value(d, SearchField.TOTAL_AMOUNT) for d in documents) if a is not None]
    dates = [c for c in (get_value(d, SearchField.CREATED_AT) for d in documents) if c is not None]

    total = sum(amounts)
    return OrderAggregation(
        count=len(documents),
        total_amount_sum=total,
        total_amount_avg=total / len(amounts) if amounts else None,
        total_amount_min=min(amounts) if amounts else None,
        total_amount_max=max(amounts) if amounts else None,
        created_at_min=min(dates) if dates else None,
        created_at_max=max(dates) if dates else None,
    )


def group_by(documents: Sequence[SearchDocument], field: Any) -> List[GroupBucket]:
    """Count and sum total amount per value; dates are bucketed by calendar day

    Raises:
        UnsupportedFieldError: for fields that are neither enums nor dates
    """
    resolved = resolve_field(field)
    field_type = FIELD_TYPES[resolved]
    if field_type not in GROUPABLE_TYPES:
        raise UnsupportedFieldError(resolved.value)

    buckets: Dict[Any, List[float]] = {}
    for document in documents:
        value = get_value(document, resolved)
        if isinstance(value, datetime):
            value = value.date().isoformat()
        bucket = buckets.setdefault(value, [0, 0.0])
        bucket[0] += 1
        bucket[1] += get_value(document, SearchField.TOTAL_AMOUNT) or 0.0

    return [
        GroupBucket(value=value, count=int(count), total_amount_sum=amount)
        for value, (count, amount) in buckets.items()
    ]
