"""Firestore document repository with an in-memory fallback."""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional


class DocumentRepository:
    """One Firestore collection of JSON documents keyed by id.

    Without a client, documents live in a process-local dict. Reads return
    copies so callers never alias stored state, matching Firestore snapshots.
    """

    def __init__(self, client: Optional[Any] = None, collection: str = "reports") -> None:
        self.client = client
        self.collection = collection
        self._memory_store: Dict[str, Dict[str, Any]] = {}

    def _collection(self):
        return self.client.collection(self.collection)

    def upsert(self, document_id: str, data: Dict[str, Any]) -> None:
        if self.client:
            self._collection().document(document_id).set(data)
        else:
            self._memory_store[document_id] = copy.deepcopy(data)

    def get(self, document_id: str) -> Optional[Dict[str, Any]]:
        if self.client:
            snapshot = self._collection().document(document_id).get()
            return snapshot.to_dict() if snapshot.exists else None
        data = self._memory_store.get(document_id)
        return copy.deepcopy(data) if data is not None else None

    def list(self) -> List[Dict[str, Any]]:
        if self.client:
            return [snapshot.to_dict() for snapshot in self._collection().stream()]
        return [copy.deepcopy(data) for data in self._memory_store.values()]

    def find(self, field: str, value: Any) -> List[Dict[str, Any]]:
        """Documents whose top-level ``field`` equals ``value``."""

        if self.client:
            from google.cloud.firestore_v1.base_query import FieldFilter

            query = self._collection().where(filter=FieldFilter(field, "==", value))
            return [snapshot.to_dict() for snapshot in query.stream()]
        return [copy.deepcopy(data) for data in self._memory_store.values() if data.get(field) == value]

    def delete(self, document_id: str) -> None:
        if self.client:
            self._collection().document(document_id).delete()
        else:
            self._memory_store.pop(document_id, None)
