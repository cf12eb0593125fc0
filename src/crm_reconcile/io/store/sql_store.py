"""
SQLAlchemy-backed document store.

Documents live in one table keyed by (collection, doc_key) with a JSON body,
which lets the reconciliation run against PostgreSQL or SQLite snapshots of
the Firestore collections. Each write batch is committed in one transaction.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Tuple

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

TABLE_NAME = "documents"

metadata = sa.MetaData()

documents_table = sa.Table(
    TABLE_NAME,
    metadata,
    sa.Column("collection", sa.String(128), primary_key=True),
    sa.Column("doc_key", sa.String(255), primary_key=True),
    sa.Column("data", sa.JSON, nullable=False),
)


class SqlWriteBatch:
    """Staged writes applied in a single transaction on commit."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
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
        table = documents_table
        with self._engine.begin() as conn:
            for collection, key, data, merge in self._writes:
                existing = conn.execute(
                    sa.select(table.c.data).where(
                        table.c.collection == collection, table.c.doc_key == key
                    )
                ).scalar_one_or_none()

                if existing is None:
                    conn.execute(
                        table.insert().values(
                            collection=collection, doc_key=key, data=data
                        )
                    )
                    continue

                body = {**existing, **data} if merge else data
                conn.execute(
                    table.update()
                    .where(table.c.collection == collection, table.c.doc_key == key)
                    .values(data=body)
                )
        self._writes = []

    def __len__(self) -> int:
        return len(self._writes)


class SqlDocumentStore:
    """
    DocumentStore over a SQLAlchemy engine.

    Usage:
        store = SqlDocumentStore(sa.create_engine("sqlite:///snapshot.db"))
        store.create_schema()
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "SqlDocumentStore":
        return cls(sa.create_engine(url))

    def create_schema(self) -> None:
        """Create the documents table if it does not exist."""
        metadata.create_all(self.engine)
        logger.debug("sql_store.schema_ready", table=TABLE_NAME)

    def stream(self, collection: str) -> Iterator[Tuple[str, Dict[str, Any]]]:
        table = documents_table
        with self.engine.connect() as conn:
            result = conn.execute(
                sa.select(table.c.doc_key, table.c.data)
                .where(table.c.collection == collection)
                .order_by(table.c.doc_key)
            )
            rows = result.fetchall()
        for key, data in rows:
            yield key, data

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self.engine)

    def insert_documents(
        self, collection: str, documents: Mapping[str, Mapping[str, Any]]
    ) -> int:
        """Replace-write documents into a collection (snapshot import)."""
        batch = self.batch()
        for key, data in documents.items():
            batch.set(collection, str(key), data, merge=False)
        count = len(batch)
        batch.commit()
        return count
