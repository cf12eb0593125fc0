"""In-memory document store for tests and local dry runs."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


class InMemoryWriteBatch:
    """Write batch that applies all staged writes on commit."""

    def __init__(self, store: "InMemoryDocumentStore") -> None:
        self._store = store
        self._writes: List[Tuple[str, str, Dict[str, Any], bool]] = []

    def set(
        self,
        collection: str,
        key: str,
        data: Mapping[str, Any],
        merge: bool = True,
    ) -> None:
        self._writes.append((collection, key, dict(data), merge))

    def commit(self) -> None:
        self._store._apply(self._writes)
        self._writes = []

    def __len__(self) -> int:
        return len(self._writes)


class InMemoryDocumentStore:
    """
    Dict-backed DocumentStore.

    Example:
        >>> store = InMemoryDocumentStore({"fishbowl_customers": {"S1": {"name": "Acme"}}})
        >>> dict(store.stream("fishbowl_customers"))
        {'S1': {'name': 'Acme'}}
    """

    def __init__(
        self, collections: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None
    ) -> None:
        self._collections: Dict[str, Dict[str, Any]] = {}
        self.commit_count = 0
        for name, documents in (collections or {}).items():
            self._collections[name] = {
                str(key): copy.deepcopy(data) for key, data in documents.items()
            }

    def stream(self, collection: str) -> Iterator[Tuple[str, Dict[str, Any]]]:
        for key, data in list(self._collections.get(collection, {}).items()):
            yield key, copy.deepcopy(data)

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        data = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(data) if data is not None else None

    def _apply(self, writes: List[Tuple[str, str, Dict[str, Any], bool]]) -> None:
        for collection, key, data, merge in writes:
            documents = self._collections.setdefault(collection, {})
            if merge and isinstance(documents.get(key), dict):
                documents[key].update(copy.deepcopy(data))
            else:
                documents[key] = copy.deepcopy(data)
        self.commit_count += 1
