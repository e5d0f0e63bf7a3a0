"""
In-memory search index
Owns the set of indexed order documents; single-key upsert/delete and
copy-on-write snapshot replace keep readers from ever seeing a half-built index
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from .models import SearchDocument

logger = logging.getLogger(__name__)

ADDRESS_PARTS = ("street", "city", "state", "country", "postalCode")


def _address_text(address: Optional[Dict[str, Any]]) -> List[str]:
    if not address:
        return []
    return [str(address[part]) for part in ADDRESS_PARTS if address.get(part)]


def build_searchable_text(document: SearchDocument) -> str:
    """Lower-cased concatenation of every searchable value of a document"""
    parts = [
        document.order_number,
        document.customer_name,
        document.customer_email,
        document.status,
        document.payment_status,
        document.fulfillment_status,
        document.notes,
    ]
    parts.extend(_address_text(document.shipping_address))
    parts.extend(_address_text(document.billing_address))
    return " ".join(str(part) for part in parts if part).lower()


class SearchIndex:
    """Authoritative collection of search documents keyed by order id"""

    def __init__(self, documents: Optional[Iterable[SearchDocument]] = None):
        self._lock = threading.Lock()
        self._documents: Dict[str, SearchDocument] = {}
        if documents:
            self.snapshot_replace(documents)

    def _prepare(self, document: SearchDocument) -> SearchDocument:
        return document.model_copy(update={"searchable_text": build_searchable_text(document)})

    def upsert(self, document: SearchDocument) -> SearchDocument:
        """Insert or fully replace a document; searchable text is always rebuilt"""
        prepared = self._prepare(document)
        with self._lock:
            self._documents[prepared.id] = prepared
        logger.debug(f"Upserted document {prepared.id}")
        return prepared

    def delete(self, document_id: str) -> bool:
        """Remove a document; returns False when it was not indexed"""
        with self._lock:
            removed = self._documents.pop(document_id, None)
        if removed is not None:
            logger.debug(f"Deleted document {document_id}")
        return removed is not None

    def snapshot_replace(self, documents: Iterable[SearchDocument]) -> int:
        """Atomically swap the whole index content"""
        # The new mapping is built outside the lock and swapped in one step
        replacement: Dict[str, SearchDocument] = {}
        for document in documents:
            prepared = self._prepare(document)
            replacement[prepared.id] = prepared

        with self._lock:
            self._documents = replacement

        logger.info(f"Index snapshot replaced with {len(replacement)} documents")
        return len(replacement)

    def compact(self) -> int:
        """Rebuild the backing mapping so removed keys release their slots"""
        with self._lock:
            self._documents = dict(self._documents)
            return len(self._documents)

    def all(self) -> List[SearchDocument]:
        """Point-in-time list of every document, in insertion order"""
        with self._lock:
            return list(self._documents.values())

    def get(self, document_id: str) -> Optional[SearchDocument]:
        with self._lock:
            return self._documents.get(document_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._documents.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents
