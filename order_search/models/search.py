from pydantic import BaseModel
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum

from ..config import SearchConfig


class SearchField(str, Enum):
    """Closed set of searchable order fields"""
    ORDER_NUMBER = "orderNumber"
    CUSTOMER_NAME = "customerName"
    CUSTOMER_EMAIL = "customerEmail"
    STATUS = "status"
    PAYMENT_STATUS = "paymentStatus"
    FULFILLMENT_STATUS = "fulfillmentStatus"
    TOTAL_AMOUNT = "totalAmount"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    SHIPPING_ADDRESS = "shippingAddress"
    BILLING_ADDRESS = "billingAddress"
    NOTES = "notes"


class FilterOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class FilterCondition(BaseModel):
    # field and operator stay plain strings so unknown values are reported
    # together with the other validation errors of the query
    field: str
    operator: str
    value: Any = None
    logical_operator: LogicalOperator = LogicalOperator.AND


class SortSpec(BaseModel):
    field: str
    direction: SortDirection = SortDirection.DESC


class SearchQuery(BaseModel):
    text: Optional[str] = None
    search_fields: List[str] = SearchConfig.get_default_search_fields()
    filters: List[FilterCondition] = []
    sort: List[SortSpec] = []
    page: int = 1
    limit: int = SearchConfig.DEFAULT_PAGE_SIZE
    fuzzy: bool = False
    fuzzy_threshold: float = SearchConfig.DEFAULT_FUZZY_THRESHOLD
    highlight: bool = False
    include_total: bool = True
    facet_fields: Optional[List[str]] = None


class DateRangeFilter(BaseModel):
    field: str = SearchField.CREATED_AT.value
    start: datetime
    end: datetime


class NumericRangeFilter(BaseModel):
    field: str = SearchField.TOTAL_AMOUNT.value
    min: float
    max: float


class Pagination(BaseModel):
    page: int = 1
    limit: int = SearchConfig.DEFAULT_PAGE_SIZE


class SearchOptions(BaseModel):
    fuzzy: bool = False
    fuzzy_threshold: float = SearchConfig.DEFAULT_FUZZY_THRESHOLD
    highlight: bool = False
    include_total: bool = True


class AdvancedQuery(BaseModel):
    """Advanced search with range helpers and an explicit filter combinator"""
    text: Optional[str] = None
    fields: Optional[List[str]] = None
    filters: List[FilterCondition] = []
    logical_operator: LogicalOperator = LogicalOperator.AND
    date_range: Optional[DateRangeFilter] = None
    numeric_range: Optional[NumericRangeFilter] = None
    sort: List[SortSpec] = []
    pagination: Pagination = Pagination()
    options: SearchOptions = SearchOptions()
