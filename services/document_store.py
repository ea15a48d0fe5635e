"""Document Store Module

This module provides:
1. An abstract keyed document store (add/set/get/update/delete, equality
   queries with ordering and limits, change subscriptions)
2. An in-memory implementation with optional JSON persistence
3. A Firestore implementation backed by firebase-admin

Collections are addressed by slash-separated paths, e.g.
"users/<uid>/conversations/<cid>/messages". Documents are plain dicts; reads
return a copy with the document id under "id".
"""
import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from config.settings import STORE_BACKEND, STORE_PATH, FIREBASE_CREDENTIALS

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], None]


class _ServerTimestamp:
    """Placeholder resolved to the write time by the store."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStore(ABC):
    """Keyed document operations shared by every backend."""

    @abstractmethod
    def add(self, collection: str, data: Document) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        """Create or overwrite a document; merge=True keeps fields not in data."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch a document, or None when it does not exist."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Document) -> None:
        """Update fields of an existing document. Raises KeyError if missing."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def query(self, collection: str, filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Document]:
        """Equality-filtered, optionally ordered and limited fetch."""

    @abstractmethod
    def subscribe(self, collection: str, callback: SnapshotCallback,
                  filters: Optional[Dict[str, Any]] = None,
                  order_by: Optional[str] = None,
                  descending: bool = False) -> Callable[[], None]:
        """Call callback with the matching documents now and on every change.

        Returns a function that cancels the subscription.
        """

    def batch_add(self, collection: str, items: List[Document]) -> List[str]:
        """Add several documents; backends with write batches commit them together."""
        return [self.add(collection, item) for item in items]


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Features:
    - Monotonic server timestamps (stable creation order)
    - Synchronous subscription callbacks
    - Optional persistence of the whole store to a JSON file
    """

    def __init__(self, persist_path: Optional[Path] = None):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._subscribers: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._last_timestamp: Optional[datetime] = None
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path:
            self._load_from_disk()

    # === Core Document Operations ===

    def add(self, collection: str, data: Document) -> str:
        doc_id = uuid.uuid4().hex[:20]
        with self._lock:
            self._docs(collection)[doc_id] = self._resolve(data)
            self._save()
        self._notify(collection)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        with self._lock:
            docs = self._docs(collection)
            resolved = self._resolve(data)
            if merge and doc_id in docs:
                docs[doc_id].update(resolved)
            else:
                docs[doc_id] = resolved
            self._save()
        self._notify(collection)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return {**data, "id": doc_id}

    def update(self, collection: str, doc_id: str, data: Document) -> None:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise KeyError(f"No document {collection}/{doc_id}")
            docs[doc_id].update(self._resolve(data))
            self._save()
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._docs(collection).pop(doc_id, None)
            self._save()
        self._notify(collection)

    def query(self, collection: str, filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Document]:
        with self._lock:
            rows = [
                {**data, "id": doc_id}
                for doc_id, data in self._collections.get(collection, {}).items()
                if all(data.get(k) == v for k, v in (filters or {}).items())
            ]
        if order_by:
            # Documents missing the field sort first; ties keep insertion order
            rows.sort(key=lambda d: (d.get(order_by) is not None, d.get(order_by) or 0),
                      reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def subscribe(self, collection: str, callback: SnapshotCallback,
                  filters: Optional[Dict[str, Any]] = None,
                  order_by: Optional[str] = None,
                  descending: bool = False) -> Callable[[], None]:
        token = uuid.uuid4().hex
        with self._lock:
            self._subscribers[token] = {
                "collection": collection,
                "callback": callback,
                "filters": filters,
                "order_by": order_by,
                "descending": descending,
            }
        callback(self.query(collection, filters, order_by, descending))

        def unsubscribe():
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    # === Internals ===

    def _docs(self, collection: str) -> Dict[str, Document]:
        return self._collections.setdefault(collection, {})

    def _server_now(self) -> datetime:
        now = datetime.now()
        if self._last_timestamp and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve(self, data: Document) -> Document:
        resolved = {}
        for key, value in data.items():
            if key == "id":
                continue
            resolved[key] = self._server_now() if value is SERVER_TIMESTAMP else value
        return resolved

    def _notify(self, collection: str):
        with self._lock:
            targets = [s for s in self._subscribers.values() if s["collection"] == collection]
        for sub in targets:
            rows = self.query(collection, sub["filters"], sub["order_by"], sub["descending"])
            try:
                sub["callback"](rows)
            except Exception as e:
                logger.error(f"Subscriber for {collection} failed: {e}", exc_info=True)

    # === Persistence ===

    def _save(self):
        """Save the whole store to disk."""
        if not self._persist_path:
            return
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._persist_path, "w") as f:
            json.dump(self._collections, f, indent=2, default=_encode_value)

    def _load_from_disk(self):
        """Load all collections from disk."""
        if not self._persist_path.exists():
            return
        try:
            with open(self._persist_path) as f:
                self._collections = json.load(f, object_hook=_decode_value)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load store {self._persist_path}: {e}")
            return

        timestamps = [
            value
            for docs in self._collections.values()
            for data in docs.values()
            for value in data.values()
            if isinstance(value, datetime)
        ]
        if timestamps:
            self._last_timestamp = max(timestamps)
        logger.info(f"Loaded {len(self._collections)} collections from {self._persist_path}")


def _encode_value(value: Any):
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _decode_value(obj: Dict[str, Any]):
    if set(obj.keys()) == {"__datetime__"}:
        return datetime.fromisoformat(obj["__datetime__"])
    return obj


class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore backend (firebase-admin)."""

    def __init__(self, client=None, credentials_path: Optional[str] = None):
        if client is None:
            client = _init_firestore_client(credentials_path)
        self._db = client

    def add(self, collection: str, data: Document) -> str:
        _, ref = self._db.collection(collection).add(self._resolve(data))
        return ref.id

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        self._db.collection(collection).document(doc_id).set(self._resolve(data), merge=merge)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        snap = self._db.collection(collection).document(doc_id).get()
        if not snap.exists:
            return None
        return {**(snap.to_dict() or {}), "id": snap.id}

    def update(self, collection: str, doc_id: str, data: Document) -> None:
        from google.api_core.exceptions import NotFound

        try:
            self._db.collection(collection).document(doc_id).update(self._resolve(data))
        except NotFound as e:
            raise KeyError(f"No document {collection}/{doc_id}") from e

    def delete(self, collection: str, doc_id: str) -> None:
        self._db.collection(collection).document(doc_id).delete()

    def query(self, collection: str, filters: Optional[Dict[str, Any]] = None,
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Document]:
        q = self._build_query(collection, filters, order_by, descending, limit)
        return [{**(snap.to_dict() or {}), "id": snap.id} for snap in q.stream()]

    def subscribe(self, collection: str, callback: SnapshotCallback,
                  filters: Optional[Dict[str, Any]] = None,
                  order_by: Optional[str] = None,
                  descending: bool = False) -> Callable[[], None]:
        q = self._build_query(collection, filters, order_by, descending, None)

        def on_snapshot(snapshots, changes, read_time):
            callback([{**(snap.to_dict() or {}), "id": snap.id} for snap in snapshots])

        watch = q.on_snapshot(on_snapshot)
        return watch.unsubscribe

    def batch_add(self, collection: str, items: List[Document]) -> List[str]:
        col = self._db.collection(collection)
        batch = self._db.batch()
        ids = []
        for item in items:
            ref = col.document()
            batch.set(ref, self._resolve(item))
            ids.append(ref.id)
        batch.commit()
        return ids

    def _build_query(self, collection, filters, order_by, descending, limit):
        from firebase_admin import firestore
        from google.cloud.firestore_v1.base_query import FieldFilter

        q = self._db.collection(collection)
        for key, value in (filters or {}).items():
            q = q.where(filter=FieldFilter(key, "==", value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        if limit is not None:
            q = q.limit(limit)
        return q

    @staticmethod
    def _resolve(data: Document) -> Document:
        from firebase_admin import firestore

        return {
            key: firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value
            for key, value in data.items()
            if key != "id"
        }


def _init_firestore_client(credentials_path: Optional[str] = None):
    """Initializes the default Firebase app once and returns a Firestore client."""
    import firebase_admin
    from firebase_admin import credentials, firestore

    if not firebase_admin._apps:
        if credentials_path:
            cred = credentials.Certificate(credentials_path)
        else:
            cred = credentials.ApplicationDefault()
        firebase_admin.initialize_app(cred)
    return firestore.client()


# Global store instance
_document_store = None

def get_document_store() -> DocumentStore:
    """Get or create the global document store for the configured backend."""
    global _document_store
    if _document_store is None:
        if STORE_BACKEND == "firestore":
            _document_store = FirestoreDocumentStore(credentials_path=FIREBASE_CREDENTIALS)
        else:
            _document_store = InMemoryDocumentStore(persist_path=STORE_PATH / "store.json")
        logger.info(f"Using {type(_document_store).__name__}")
    return _document_store
