# app/services/firestore.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from .errors import StoreUnavailable
from .firebase import ensure_firestore

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    def append(self, record: Dict[str, Any]) -> None:
        """Persist one order row. Raises StoreUnavailable on any failure."""
        ...


class FirestoreOrderStore:
    """
    Append-only order rows: one document per order, keyed by orderId.

    ``create()`` fails if the document already exists, so a row is never
    overwritten even if the same id were submitted twice.
    """

    def __init__(self, collection: str = "orders",
                 client_factory: Optional[Callable[[], Any]] = None):
        self.collection = collection
        self._client_factory = client_factory or ensure_firestore

    def append(self, record: Dict[str, Any]) -> None:
        order_id = record.get("orderId")
        if not order_id:
            raise StoreUnavailable("record has no orderId")
        try:
            db = self._client_factory()
            db.collection(self.collection).document(order_id).create(record)
        except Exception as e:
            # google.api_core errors, credential errors, network errors alike
            logger.error("order %s: firestore write failed: %s", order_id, e)
            raise StoreUnavailable(f"firestore write failed: {e}") from e
