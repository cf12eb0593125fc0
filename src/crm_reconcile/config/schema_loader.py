"""
YAML loader for document field aliases.

Fishbowl and Copper documents accumulated several field names for the same
concept across integration iterations. The record schema file lists, per model
field, the document keys to try in order, plus the names of the link fields
the Applier writes back. Example::

    source:
      identifier_a: [accountId]
      address_line: [address, street]
    target:
      identifier_c: ["Account Order ID cf_698467", accountOrderId]
    link_fields:
      linked_target_id: copperCompanyId

Sections and fields that are omitted keep their built-in defaults.
"""

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
import yaml

from crm_reconcile.infrastructure.reconciliation.types import (
    DEFAULT_SOURCE_ALIASES,
    DEFAULT_TARGET_ALIASES,
    LinkFields,
    RecordSchema,
)

logger = structlog.get_logger(__name__)

# Environment variable for a schema file outside settings
SCHEMA_PATH_ENV_VAR = "CRMR_RECORD_SCHEMA_PATH"

_SECTIONS = ("source", "target", "link_fields")


def _read_yaml(file_path: Path) -> Optional[Dict[str, Any]]:
    """
    Read the schema YAML file.

    Behavior:
    - Missing file: Returns None, logs debug message (no exception)
    - Empty file: Returns None
    - Invalid YAML or non-mapping content: Raises ValueError with filename
    """
    if not file_path.exists():
        logger.debug("schema_loader.file_not_found", file_path=str(file_path))
        return None

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(
            "schema_loader.yaml_parse_error", file_path=str(file_path), error=str(e)
        )
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    if content is None:
        logger.debug("schema_loader.empty_file", file_path=str(file_path))
        return None

    if not isinstance(content, dict):
        raise ValueError(
            f"Invalid schema format in {file_path}: "
            f"expected dict, got {type(content).__name__}"
        )

    unknown = set(content) - set(_SECTIONS)
    if unknown:
        raise ValueError(
            f"Unknown sections in {file_path}: {sorted(unknown)} "
            f"(expected {list(_SECTIONS)})"
        )
    return content


def _parse_aliases(
    section: Any, allowed: Tuple[str, ...], section_name: str, file_path: Path
) -> Dict[str, List[str]]:
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(
            f"Invalid '{section_name}' section in {file_path}: expected dict"
        )

    aliases: Dict[str, List[str]] = {}
    for name, keys in section.items():
        if name not in allowed:
            raise ValueError(
                f"Unknown field '{name}' in '{section_name}' section of {file_path}"
            )
        if isinstance(keys, str):
            keys = [keys]
        if not isinstance(keys, list) or not keys:
            raise ValueError(
                f"Field '{name}' in {file_path} must list at least one document key"
            )
        cleaned = [str(key).strip() for key in keys if str(key).strip()]
        if not cleaned:
            raise ValueError(
                f"Field '{name}' in {file_path} must list at least one document key"
            )
        aliases[name] = cleaned
    return aliases


def load_record_schema(
    path: Optional[Union[str, Path]] = None,
) -> Tuple[RecordSchema, LinkFields]:
    """
    Load the record schema and link field names.

    Args:
        path: YAML file path. Falls back to CRMR_RECORD_SCHEMA_PATH, then to
            the built-in defaults when neither is set.

    Returns:
        Tuple of (RecordSchema, LinkFields).

    Raises:
        ValueError: If the file exists but is malformed.
    """
    if path is None:
        path = os.environ.get(SCHEMA_PATH_ENV_VAR)
    if not path:
        return RecordSchema(), LinkFields()

    file_path = Path(path)
    content = _read_yaml(file_path)
    if content is None:
        return RecordSchema(), LinkFields()

    source = _parse_aliases(
        content.get("source"), tuple(DEFAULT_SOURCE_ALIASES), "source", file_path
    )
    target = _parse_aliases(
        content.get("target"), tuple(DEFAULT_TARGET_ALIASES), "target", file_path
    )

    link_section = content.get("link_fields") or {}
    if not isinstance(link_section, dict):
        raise ValueError(f"Invalid 'link_fields' section in {file_path}: expected dict")
    allowed_links = {f.name for f in fields(LinkFields)}
    unknown_links = set(link_section) - allowed_links
    if unknown_links:
        raise ValueError(
            f"Unknown link fields in {file_path}: {sorted(unknown_links)}"
        )

    logger.debug(
        "schema_loader.file_loaded",
        file_path=str(file_path),
        source_overrides=len(source),
        target_overrides=len(target),
        link_overrides=len(link_section),
    )
    return (
        RecordSchema.from_mapping(source=source, target=target),
        LinkFields.from_mapping(link_section),
    )
