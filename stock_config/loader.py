"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``stock_config.schema``.  The single public entry point for runtime config
is ``stock_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections and keys are rejected, so a typo never silently falls
  back to a default.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types, out-of-range values, unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import (
    DatabaseConfig,
    LabelConfig,
    ListingConfig,
    StockConfig,
)

# Highest unit number a label can carry
_MAX_UNIT_NUMBER = 9999


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str, allowed: set[str]) -> dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{name}' must be a mapping")
    unknown = set(section) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in section '{name}': {sorted(unknown)}")
    return section


def _int(section: dict[str, Any], key: str, default: int, path: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{path}.{key} must be an integer, got {value!r}")
    return value


def _str(section: dict[str, Any], key: str, default: str, path: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{path}.{key} must be a non-empty string, got {value!r}")
    return value.strip()


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    section = _section(data, "database", {"url", "echo"})
    echo = section.get("echo", False)
    if not isinstance(echo, bool):
        raise ValueError(f"database.echo must be a boolean, got {echo!r}")
    return DatabaseConfig(
        url=_str(section, "url", DatabaseConfig.url, "database"),
        echo=echo,
    )


def parse_label(data: dict[str, Any]) -> LabelConfig:
    section = _section(
        data, "label", {"approaching_limit_threshold", "default_barcode_type"}
    )
    threshold = _int(
        section, "approaching_limit_threshold",
        LabelConfig.approaching_limit_threshold, "label",
    )
    if not 1 <= threshold <= _MAX_UNIT_NUMBER:
        raise ValueError(
            f"label.approaching_limit_threshold must be in 1..{_MAX_UNIT_NUMBER}, "
            f"got {threshold}"
        )
    return LabelConfig(
        approaching_limit_threshold=threshold,
        default_barcode_type=_str(
            section, "default_barcode_type", LabelConfig.default_barcode_type, "label"
        ),
    )


def parse_listing(data: dict[str, Any]) -> ListingConfig:
    section = _section(data, "listing", {"default_limit", "max_limit", "recent_limit"})
    max_limit = _int(section, "max_limit", ListingConfig.max_limit, "listing")
    if max_limit < 1:
        raise ValueError(f"listing.max_limit must be at least 1, got {max_limit}")

    limits = {}
    for key in ("default_limit", "recent_limit"):
        value = _int(section, key, getattr(ListingConfig, key), "listing")
        if not 1 <= value <= max_limit:
            raise ValueError(f"listing.{key} must be in 1..{max_limit}, got {value}")
        limits[key] = value

    return ListingConfig(max_limit=max_limit, **limits)


def parse_config(data: dict[str, Any], source: str = "<memory>") -> StockConfig:
    """
    Parse a settings mapping into a StockConfig.

    Raises:
        ValueError: Unknown sections, wrong types or out-of-range values.
    """
    unknown = set(data) - {"database", "label", "listing"}
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    return StockConfig(
        database=parse_database(data),
        label=parse_label(data),
        listing=parse_listing(data),
        source=source,
        checksum=compute_checksum(data),
    )
