"""
Search-related data models for the indexing system
"""

from pydantic import BaseModel
from typing import List, Dict, Optional, Any
from datetime import datetime


class SearchDocument(BaseModel):
    """Flattened, denormalized projection of one order"""
    id: str
    order_number: str = ""
    customer_name: str = ""
    customer_email: str = ""
    status: Optional[str] = None
    payment_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    total_amount: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    shipping_address: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    notes: str = ""

    # Derived from the fields above, rebuilt on every upsert
    searchable_text: str = ""

    model_config = {"frozen": True}


class SearchHit(BaseModel):
    """Search result with ranking information"""
    document: SearchDocument
    relevance_score: float = 0.0
    highlighted_fields: Dict[str, str] = {}


class Suggestion(BaseModel):
    text: str
    type: str
    score: float


class FacetValue(BaseModel):
    value: Any
    count: int


class Facet(BaseModel):
    field: str
    type: str = "terms"
    values: List[FacetValue] = []


class DateRangeSummary(BaseModel):
    min: datetime
    max: datetime


class SearchResult(BaseModel):
    """Result envelope for a search request"""
    items: List[SearchHit] = []
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0
    execution_time_ms: float = 0.0
    suggestions: List[Suggestion] = []
    facets: Dict[str, List[FacetValue]] = {}
    date_range: Optional[DateRangeSummary] = None


class OrderAggregation(BaseModel):
    count: int = 0
    total_amount_sum: float = 0.0
    total_amount_avg: Optional[float] = None
    total_amount_min: Optional[float] = None
    total_amount_max: Optional[float] = None
    created_at_min: Optional[datetime] = None
    created_at_max: Optional[datetime] = None


class GroupBucket(BaseModel):
    value: Any
    count: int
    total_amount_sum: float


class PopularTerm(BaseModel):
    term: str
    count: int


class SearchStats(BaseModel):
    total_queries: int
    average_execution_time_ms: float
    popular_terms: List[PopularTerm] = []
    index_size: int
    last_index_update: Optional[datetime] = None


class IndexStats(BaseModel):
    """Statistics for indexing operations"""
    total_documents: int = 0
    indexed_documents: int = 0
    last_update_time: Optional[datetime] = None
    average_index_time_ms: float = 0.0
    index_errors: int = 0


class HealthReport(BaseModel):
    status: str
    issues: List[str] = []
    recommendations: List[str] = []


class IndexingProgress(BaseModel):
    total_orders: int
    indexed_orders: int
    progress: float
    estimated_time_remaining_ms: float


class BulkIndexResult(BaseModel):
    """Outcome of indexing a batch of orders"""
    total: int = 0
    indexed: int = 0
    failed: int = 0
    processing_time_ms: float = 0.0
    errors: List[str] = []
