"""
Configuration management for crm-reconcile.

This module provides environment-based configuration using Pydantic BaseSettings,
so the same reconciliation code can run against a local SQL store during
development and against Firestore in production without code changes.

Environment variables are loaded with the CRMR_ prefix, e.g. CRMR_STORE_BACKEND.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("CRMR_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

# Firestore rejects write batches larger than this
FIRESTORE_MAX_BATCH_SIZE = 500


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Collections:
    - source_collection: ERP (Fishbowl) customer documents keyed by source id
    - target_collection: CRM (Copper) company documents keyed by store key

    Matching behavior:
    - min_address_length: normalized addresses must be strictly longer than this
    - exclusive_targets: lock each target to at most one source per run
    - enable_name_matching: append the fuzzy display-name strategy (low confidence)
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    # Store configuration
    store_backend: Literal["firestore", "sql", "memory"] = Field(
        default="firestore", description="Document store backend"
    )
    firebase_credentials_path: Optional[str] = Field(
        default=None,
        description="Service account JSON; application default credentials when unset",
    )
    firebase_project_id: Optional[str] = Field(
        default=None, description="Firebase project id override"
    )
    firebase_app_name: str = Field(
        default="crm-reconcile",
        description="Name of the firebase_admin app owned by the store",
    )
    database_url: Optional[str] = Field(
        default=None, description="SQLAlchemy URL for the sql store backend"
    )

    # Collections
    source_collection: str = Field(
        default="fishbowl_customers", description="Source (ERP) collection name"
    )
    target_collection: str = Field(
        default="copper_companies", description="Target (CRM) collection name"
    )

    # Matching
    min_address_length: int = Field(
        default=5,
        ge=0,
        description="Normalized addresses must be longer than this to be matched",
    )
    exclusive_targets: bool = Field(
        default=False,
        description="Claim each target for the first source that matches it",
    )
    enable_name_matching: bool = Field(
        default=False, description="Enable fuzzy display-name fallback strategy"
    )
    name_similarity_threshold: float = Field(
        default=0.85,
        gt=0.0,
        le=1.0,
        description="Similarity (0-1) the name strategy must exceed",
    )
    record_schema_path: Optional[str] = Field(
        default=None, description="YAML file overriding document field aliases"
    )

    # Apply
    apply_batch_size: int = Field(
        default=FIRESTORE_MAX_BATCH_SIZE,
        ge=1,
        description="Documents per committed write batch",
    )

    # Export
    export_dir: str = Field(
        default="exports/", description="Directory for review artefacts"
    )

    @model_validator(mode="after")
    def validate_store_backend(self) -> "Settings":
        """Check backend-specific settings are consistent."""
        if self.store_backend == "sql" and not self.database_url:
            raise ValueError(
                "CRMR_DATABASE_URL is required when store_backend is 'sql'"
            )
        if (
            self.store_backend == "firestore"
            and self.apply_batch_size > FIRESTORE_MAX_BATCH_SIZE
        ):
            raise ValueError(
                f"apply_batch_size must be <= {FIRESTORE_MAX_BATCH_SIZE} "
                "for the firestore backend"
            )
        if self.database_url and self.database_url.startswith("postgres://"):
            self.database_url = self.database_url.replace(
                "postgres://", "postgresql://", 1
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="CRMR_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
