"""
Field accessor: typed values for the closed set of searchable fields
"""

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from ..exceptions import UnsupportedFieldError
from ..models.search import SearchField
from .models import SearchDocument


class FieldType(str, Enum):
    STRING = "string"
    NESTED_PATH = "nested_path"
    ENUM = "enum"
    NUMERIC = "numeric"
    DATE = "date"
    JSON = "json"


FIELD_TYPES: Dict[SearchField, FieldType] = {
    SearchField.ORDER_NUMBER: FieldType.STRING,
    SearchField.NOTES: FieldType.STRING,
    SearchField.CUSTOMER_NAME: FieldType.NESTED_PATH,
    SearchField.CUSTOMER_EMAIL: FieldType.NESTED_PATH,
    SearchField.STATUS: FieldType.ENUM,
    SearchField.PAYMENT_STATUS: FieldType.ENUM,
    SearchField.FULFILLMENT_STATUS: FieldType.ENUM,
    SearchField.TOTAL_AMOUNT: FieldType.NUMERIC,
    SearchField.CREATED_AT: FieldType.DATE,
    SearchField.UPDATED_AT: FieldType.DATE,
    SearchField.SHIPPING_ADDRESS: FieldType.JSON,
    SearchField.BILLING_ADDRESS: FieldType.JSON,
}

# Logical fields that live inside an address blob
NESTED_PATHS: Dict[SearchField, Tuple[SearchField, str]] = {
    SearchField.CUSTOMER_NAME: (SearchField.SHIPPING_ADDRESS, "name"),
    SearchField.CUSTOMER_EMAIL: (SearchField.SHIPPING_ADDRESS, "email"),
}

_datetime_adapter = TypeAdapter(datetime)


def resolve_field(field: Union[SearchField, str]) -> SearchField:
    """Map a field identifier to the closed field enumeration"""
    if isinstance(field, SearchField):
        return field
    try:
        return SearchField(field)
    except ValueError:
        raise UnsupportedFieldError(field) from None


def get_field_type(field: Union[SearchField, str]) -> FieldType:
    return FIELD_TYPES[resolve_field(field)]


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def coerce_datetime(value: Any) -> datetime:
    """Coerce a filter or document value to a comparable UTC instant

    Raises:
        ValueError: if the value is not a datetime representation
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    try:
        return to_utc(_datetime_adapter.validate_python(value))
    except ValidationError as e:
        raise ValueError(f"not a valid datetime: {value!r}") from e


def serialize_blob(value: Optional[Dict[str, Any]]) -> str:
    """Serialized form of an address blob for generic contains-checks"""
    if value is None:
        return ""
    return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)


def get_nested_value(document: SearchDocument, field: SearchField, path: str) -> Optional[str]:
    blob = _BLOB_ACCESSORS[field](document)
    if not isinstance(blob, dict):
        return None
    value = blob.get(path)
    return None if value is None else str(value)


def _customer_name(document: SearchDocument) -> Optional[str]:
    value = get_nested_value(document, SearchField.SHIPPING_ADDRESS, "name")
    return value if value is not None else (document.customer_name or None)


def _customer_email(document: SearchDocument) -> Optional[str]:
    value = get_nested_value(document, SearchField.SHIPPING_ADDRESS, "email")
    return value if value is not None else (document.customer_email or None)


def _optional_datetime(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value) if value is not None else None


_BLOB_ACCESSORS: Dict[SearchField, Callable[[SearchDocument], Any]] = {
    SearchField.SHIPPING_ADDRESS: lambda d: d.shipping_address,
    SearchField.BILLING_ADDRESS: lambda d: d.billing_address,
}

_ACCESSORS: Dict[SearchField, Callable[[SearchDocument], Any]] = {
    SearchField.ORDER_NUMBER: lambda d: d.order_number,
    SearchField.CUSTOMER_NAME: _customer_name,
    SearchField.CUSTOMER_EMAIL: _customer_email,
    SearchField.STATUS: lambda d: d.status,
    SearchField.PAYMENT_STATUS: lambda d: d.payment_status,
    SearchField.FULFILLMENT_STATUS: lambda d: d.fulfillment_status,
    SearchField.TOTAL_AMOUNT: lambda d: float(d.total_amount) if d.total_amount is not None else None,
    SearchField.CREATED_AT: lambda d: _optional_datetime(d.created_at),
    SearchField.UPDATED_AT: lambda d: _optional_datetime(d.updated_at),
    SearchField.SHIPPING_ADDRESS: lambda d: d.shipping_address,
    SearchField.BILLING_ADDRESS: lambda d: d.billing_address,
    SearchField.NOTES: lambda d: d.notes,
}


def get_value(document: SearchDocument, field: Union[SearchField, str]) -> Any:
    """Typed value of a field: float for amounts, UTC datetimes for
    timestamps, dicts for address blobs, strings otherwise.

    Raises:
        UnsupportedFieldError: for identifiers outside the field set
    """
    return _ACCESSORS[resolve_field(field)](document)


def get_text_value(document: SearchDocument, field: Union[SearchField, str]) -> str:
    """String form of a field for text matching; address blobs are serialized"""
    resolved = resolve_field(field)
    value = _ACCESSORS[resolved](document)
    if value is None:
        return ""
    if FIELD_TYPES[resolved] == FieldType.JSON:
        return serialize_blob(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_comparable_value(document: SearchDocument, field: Union[SearchField, str]) -> Any:
    """Hashable value for grouping and sorting"""
    resolved = resolve_field(field)
    if FIELD_TYPES[resolved] == FieldType.JSON:
        value = _ACCESSORS[resolved](document)
        return serialize_blob(value) if value is not None else None
    return _ACCESSORS[resolved](document)
