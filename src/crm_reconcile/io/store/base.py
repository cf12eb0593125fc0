"""
Document store interfaces.

The reconciliation core needs two things from the backing store: a full read
of a collection and a sequence of bounded, merge-semantics write batches.
Backends implement these protocols; the core never talks to a database SDK
directly.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Protocol, Tuple


class WriteBatch(Protocol):
    """A group of writes committed together."""

    def set(
        self,
        collection: str,
        key: str,
        data: Mapping[str, Any],
        merge: bool = True,
    ) -> None:
        """Stage a write. With merge=True, fields not in data are preserved."""
        ...

    def commit(self) -> None:
        """Durably apply every staged write, or raise and apply none."""
        ...

    def __len__(self) -> int:
        ...


class DocumentStore(Protocol):
    """Minimal key/document store used by the Loader and the Applier."""

    def stream(self, collection: str) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """Yield (document key, document data) for every document."""
        ...

    def batch(self) -> WriteBatch:
        """Start a new write batch."""
        ...
