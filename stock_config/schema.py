"""
StockConfig schema.

Frozen dataclasses for the YAML settings.  The loader parses YAML into
these types; bridges turn them into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///stock_ledger.db"
    echo: bool = False


@dataclass(frozen=True)
class LabelConfig:
    """Unit label print-run settings."""

    approaching_limit_threshold: int = 9900
    default_barcode_type: str = "CODE128"


@dataclass(frozen=True)
class ListingConfig:
    """Movement history page sizes."""

    default_limit: int = 50
    max_limit: int = 100
    recent_limit: int = 10


@dataclass(frozen=True)
class StockConfig:
    """Validated runtime configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    label: LabelConfig = field(default_factory=LabelConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    source: str = "<defaults>"
    checksum: str = ""
