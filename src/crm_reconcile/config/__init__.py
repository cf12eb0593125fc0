"""Configuration management for crm-reconcile.

Usage:
    >>> from crm_reconcile.config import get_settings
    >>> settings = get_settings()
    >>> settings.source_collection
    'fishbowl_customers'
"""

from crm_reconcile.config.settings import Settings, get_settings
from crm_reconcile.config.schema_loader import load_record_schema

__all__ = [
    "Settings",
    "get_settings",
    "load_record_schema",
]
