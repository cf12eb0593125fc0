"""Pytest configuration shared by the crm-reconcile suites.

Settings are pinned to the in-memory backend before any crm_reconcile import
so that tests never pick up a developer .env pointing at Firestore.
"""

from __future__ import annotations

import os

os.environ["CRMR_STORE_BACKEND"] = "memory"
os.environ.setdefault("CRMR_ENV_FILE", "tests/.env.test-missing")

from typing import Any, Callable, Dict, Generator, List

import pytest

from crm_reconcile.config.settings import Settings, get_settings
from crm_reconcile.io.store.memory import InMemoryDocumentStore

SOURCE_COLLECTION = "fishbowl_customers"
TARGET_COLLECTION = "copper_companies"


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory")


@pytest.fixture
def source_documents() -> Dict[str, Dict[str, Any]]:
    """Fishbowl customers covering each strategy plus an unmatched record."""
    return {
        "S1": {"name": "Acme Supply", "accountId": "C104"},
        "S2": {"name": "Bolt Hardware", "accountNumber": "72189386"},
        "S3": {"name": "Cedar Goods", "address": "123 Main Street"},
        "S4": {"name": "Nowhere Inc", "address": "1 A St"},
    }


@pytest.fixture
def target_documents() -> Dict[str, Dict[str, Any]]:
    return {
        "doc-a": {"id": "T-A", "Name": "Acme Supply Co", "Account ID": "C104"},
        "doc-b": {
            "id": "T-B",
            "Name": "Bolt Hardware LLC",
            "Account Order ID cf_698467": "72189386",
        },
        "doc-c": {"id": "T-C", "Name": "Cedar Goods", "Street": "123 MAIN ST."},
        "doc-d": {"id": "T-D", "Name": "A Stop", "Street": "1 a st"},
    }


@pytest.fixture
def store(
    source_documents: Dict[str, Dict[str, Any]],
    target_documents: Dict[str, Dict[str, Any]],
) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(
        {SOURCE_COLLECTION: source_documents, TARGET_COLLECTION: target_documents}
    )


@pytest.fixture
def match_payloads() -> Callable[..., List[Dict[str, Any]]]:
    """Factory for reviewed-match payloads in the camelCase review format."""

    def _build(count: int, prefix: str = "S") -> List[Dict[str, Any]]:
        return [
            {
                "sourceId": f"{prefix}{i}",
                "sourceDisplayName": f"Customer {i}",
                "targetId": f"T{i}",
                "targetDisplayName": f"Company {i}",
                "matchType": "identifierA",
                "confidence": "high",
                "matchedIdentifierValue": f"C{i}",
            }
            for i in range(count)
        ]

    return _build
