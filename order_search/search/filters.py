"""
Filter predicate compiler
Turns (field, operator, value) conditions into predicates over search documents
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Sequence, Tuple

from ..exceptions import (
    InvalidFilterValueError,
    MissingFilterValueError,
    SearchValidationError,
    UnsupportedOperatorError,
    raise_for_errors,
)
from ..models.search import FilterCondition, FilterOperator, LogicalOperator, SearchField
from .fields import (
    FIELD_TYPES,
    FieldType,
    coerce_datetime,
    get_value,
    resolve_field,
    serialize_blob,
)
from .models import SearchDocument

logger = logging.getLogger(__name__)

Predicate = Callable[[SearchDocument], bool]

_OP = FilterOperator

OPERATORS_BY_TYPE: Dict[FieldType, List[FilterOperator]] = {
    FieldType.STRING: [
        _OP.EQUALS, _OP.NOT_EQUALS, _OP.CONTAINS, _OP.NOT_CONTAINS,
        _OP.STARTS_WITH, _OP.ENDS_WITH, _OP.IN, _OP.NOT_IN,
        _OP.IS_NULL, _OP.IS_NOT_NULL,
    ],
    FieldType.NESTED_PATH: [
        _OP.EQUALS, _OP.NOT_EQUALS, _OP.CONTAINS, _OP.NOT_CONTAINS,
        _OP.STARTS_WITH, _OP.ENDS_WITH, _OP.IN, _OP.NOT_IN,
    ],
    FieldType.ENUM: [_OP.EQUALS, _OP.NOT_EQUALS, _OP.IN, _OP.NOT_IN],
    FieldType.NUMERIC: [
        _OP.EQUALS, _OP.NOT_EQUALS, _OP.GREATER_THAN, _OP.LESS_THAN,
        _OP.GREATER_THAN_OR_EQUAL, _OP.LESS_THAN_OR_EQUAL, _OP.BETWEEN,
        _OP.IN, _OP.NOT_IN,
    ],
    FieldType.DATE: [
        _OP.EQUALS, _OP.NOT_EQUALS, _OP.GREATER_THAN, _OP.LESS_THAN,
        _OP.GREATER_THAN_OR_EQUAL, _OP.LESS_THAN_OR_EQUAL, _OP.BETWEEN,
        _OP.IN, _OP.NOT_IN,
    ],
    FieldType.JSON: [_OP.CONTAINS, _OP.NOT_CONTAINS],
}

VALUE_OPTIONAL_OPERATORS = {_OP.IS_NULL, _OP.IS_NOT_NULL}


def match_all(document: SearchDocument) -> bool:
    return True


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _lower(value: Any) -> str:
    return "" if value is None else str(value).lower()


def _day_bounds(value: datetime) -> Tuple[datetime, datetime]:
    start = value.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


class FilterCompiler:
    """Compiles filter conditions into executable predicates"""

    def supported_operators(self, field: Any) -> List[str]:
        """Operators allowed for a field, as wire values

        Raises:
            UnsupportedFieldError: for identifiers outside the field set
        """
        field_type = FIELD_TYPES[resolve_field(field)]
        return [operator.value for operator in OPERATORS_BY_TYPE[field_type]]

    def validate(self, conditions: Sequence[FilterCondition]) -> List[SearchValidationError]:
        """Collect the validation errors of every condition without raising"""
        errors: List[SearchValidationError] = []
        for condition in conditions or []:
            try:
                self.compile_condition(condition)
            except SearchValidationError as e:
                errors.append(e)
        return errors

    def compile(self, conditions: Sequence[FilterCondition]) -> Predicate:
        """Compile conditions into a single predicate combined with AND

        Raises:
            SearchValidationError: every invalid condition, surfaced together
        """
        predicates, errors = self.compile_each(conditions)
        if errors:
            logger.info(f"Rejected filter set: {len(errors)} invalid conditions")
        raise_for_errors(errors)
        return self.combine(predicates, LogicalOperator.AND)

    def compile_each(
        self, conditions: Sequence[FilterCondition]
    ) -> Tuple[List[Predicate], List[SearchValidationError]]:
        predicates: List[Predicate] = []
        errors: List[SearchValidationError] = []
        for condition in conditions or []:
            try:
                predicates.append(self.compile_condition(condition))
            except SearchValidationError as e:
                errors.append(e)
        return predicates, errors

    def combine(self, predicates: Sequence[Predicate], operator: LogicalOperator) -> Predicate:
        """Combine pre-built predicates under one logical operator.

        NOT negates the first predicate only; an empty list matches everything.
        """
        predicates = list(predicates)
        if not predicates:
            return match_all

        if operator == LogicalOperator.NOT:
            first = predicates[0]
            return lambda document: not first(document)
        if operator == LogicalOperator.OR:
            return lambda document: any(p(document) for p in predicates)
        if len(predicates) == 1:
            return predicates[0]
        return lambda document: all(p(document) for p in predicates)

    def date_range(self, field: Any, start: Any, end: Any) -> Predicate:
        return self.compile_condition(
            FilterCondition(field=str(getattr(field, "value", field)),
                            operator=_OP.BETWEEN.value, value=[start, end])
        )

    def numeric_range(self, field: Any, minimum: float, maximum: float) -> Predicate:
        return self.compile_condition(
            FilterCondition(field=str(getattr(field, "value", field)),
                            operator=_OP.BETWEEN.value, value=[minimum, maximum])
        )

    def compile_condition(self, condition: FilterCondition) -> Predicate:
        """Compile one condition

        Raises:
            UnsupportedFieldError, UnsupportedOperatorError,
            MissingFilterValueError, InvalidFilterValueError
        """
        field = resolve_field(condition.field)
        try:
            operator = FilterOperator(condition.operator)
        except ValueError:
            raise UnsupportedOperatorError(field.value, condition.operator) from None

        field_type = FIELD_TYPES[field]
        if operator not in OPERATORS_BY_TYPE[field_type]:
            raise UnsupportedOperatorError(field.value, operator.value)

        if operator not in VALUE_OPTIONAL_OPERATORS and condition.value is None:
            raise MissingFilterValueError(field.value, operator.value)

        builder = {
            FieldType.STRING: self._build_string,
            FieldType.NESTED_PATH: self._build_nested,
            FieldType.ENUM: self._build_enum,
            FieldType.NUMERIC: self._build_numeric,
            FieldType.DATE: self._build_date,
            FieldType.JSON: self._build_json,
        }[field_type]
        return builder(field, operator, condition.value)

    def _build_string(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        if operator == _OP.IS_NULL:
            return lambda d: get_value(d, field) in (None, "")
        if operator == _OP.IS_NOT_NULL:
            return lambda d: get_value(d, field) not in (None, "")
        return self._text_predicate(lambda d: get_value(d, field), operator, value)

    def _build_nested(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        # customerName / customerEmail resolve to a sub-path of the shipping address
        return self._text_predicate(lambda d: get_value(d, field), operator, value)

    def _text_predicate(
        self, extract: Callable[[SearchDocument], Any], operator: FilterOperator, value: Any
    ) -> Predicate:
        if operator == _OP.EQUALS:
            return lambda d: extract(d) == value
        if operator == _OP.NOT_EQUALS:
            return lambda d: extract(d) != value
        if operator in (_OP.IN, _OP.NOT_IN):
            values = _as_list(value)
            if operator == _OP.IN:
                return lambda d: extract(d) in values
            return lambda d: extract(d) not in values

        needle = _lower(value)
        if operator == _OP.CONTAINS:
            return lambda d: needle in _lower(extract(d))
        if operator == _OP.NOT_CONTAINS:
            return lambda d: needle not in _lower(extract(d))
        if operator == _OP.STARTS_WITH:
            return lambda d: _lower(extract(d)).startswith(needle)
        return lambda d: _lower(extract(d)).endswith(needle)

    def _build_enum(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        if operator == _OP.EQUALS:
            return lambda d: get_value(d, field) == value
        if operator == _OP.NOT_EQUALS:
            return lambda d: get_value(d, field) != value
        values = _as_list(value)
        if operator == _OP.IN:
            return lambda d: get_value(d, field) in values
        return lambda d: get_value(d, field) not in values

    def _build_numeric(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        coerce = lambda v: self._coerce_number(field, v)
        return self._ordered_predicate(field, operator, value, coerce)

    def _build_date(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        coerce = lambda v: self._coerce_date(field, v)

        if operator in (_OP.EQUALS, _OP.NOT_EQUALS):
            # Dates compare by whole calendar day, not by exact instant
            start, end = _day_bounds(coerce(value))

            def within_day(d: SearchDocument) -> bool:
                current = get_value(d, field)
                return current is not None and start <= current <= end

            if operator == _OP.EQUALS:
                return within_day
            return lambda d: not within_day(d)

        return self._ordered_predicate(field, operator, value, coerce)

    def _ordered_predicate(
        self,
        field: SearchField,
        operator: FilterOperator,
        value: Any,
        coerce: Callable[[Any], Any],
    ) -> Predicate:
        if operator == _OP.BETWEEN:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidFilterValueError(field.value, value, "between expects [min, max]")
            low, high = coerce(value[0]), coerce(value[1])
            return self._guard(field, lambda current: low <= current <= high)

        if operator in (_OP.IN, _OP.NOT_IN):
            values = [coerce(v) for v in _as_list(value)]
            if operator == _OP.IN:
                return lambda d: get_value(d, field) in values
            return lambda d: get_value(d, field) not in values

        target = coerce(value)
        if operator == _OP.EQUALS:
            return lambda d: get_value(d, field) == target
        if operator == _OP.NOT_EQUALS:
            return lambda d: get_value(d, field) != target
        if operator == _OP.GREATER_THAN:
            return self._guard(field, lambda current: current > target)
        if operator == _OP.LESS_THAN:
            return self._guard(field, lambda current: current < target)
        if operator == _OP.GREATER_THAN_OR_EQUAL:
            return self._guard(field, lambda current: current >= target)
        return self._guard(field, lambda current: current <= target)

    def _guard(self, field: SearchField, check: Callable[[Any], bool]) -> Predicate:
        """Missing values never satisfy an ordering comparison"""
        def predicate(document: SearchDocument) -> bool:
            current = get_value(document, field)
            return current is not None and check(current)
        return predicate

    def _build_json(self, field: SearchField, operator: FilterOperator, value: Any) -> Predicate:
        needle = _lower(value)
        if operator == _OP.CONTAINS:
            return lambda d: needle in serialize_blob(get_value(d, field)).lower()
        return lambda d: needle not in serialize_blob(get_value(d, field)).lower()

    def _coerce_number(self, field: SearchField, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InvalidFilterValueError(field.value, value, "expected a number") from None

    def _coerce_date(self, field: SearchField, value: Any) -> datetime:
        try:
            return coerce_datetime(value)
        except ValueError:
            raise InvalidFilterValueError(field.value, value, "expected a date or datetime") from None
