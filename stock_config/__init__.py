"""
stock_config -- single public entrypoint for stock ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component may read configuration
    files or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``stock_kernel``.  The kernel MUST NEVER import from ``stock_config``;
    bridges in this package translate settings into kernel inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Same effective settings always produce the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested config file does not exist.
    - ``ValueError`` -- unknown keys, wrong types or out-of-range values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``stock_config_loaded`` log entry with the source and checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from stock_config.loader import load_yaml_file, parse_config
from stock_config.schema import StockConfig

_logger = logging.getLogger("stock_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
DATABASE_URL_ENV = "STOCK_LEDGER_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> StockConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML settings file.  Defaults to the packaged
            ``defaults.yaml``.  Sections or keys missing from the file take
            their schema defaults.

    Returns:
        Frozen StockConfig.  ``STOCK_LEDGER_DATABASE_URL``, when set,
        replaces ``database.url``.

    Raises:
        FileNotFoundError: If config_path does not exist.
        ValueError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        database = dict(data.get("database") or {})
        database["url"] = env_url
        data = {**data, "database": database}

    config = parse_config(data, source=str(path))

    _logger.info(
        "stock_config_loaded",
        extra={
            "config_source": config.source,
            "checksum": config.checksum,
            "database_url_from_env": bool(env_url),
            "approaching_limit_threshold": config.label.approaching_limit_threshold,
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "DEFAULT_CONFIG_PATH",
    "StockConfig",
    "get_active_config",
]
