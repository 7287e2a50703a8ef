"""
Config -> Kernel Bridges.

Functions that convert StockConfig settings into kernel inputs.  These live
in stock_config (the producer) because the kernel must NEVER import
stock_config.

Usage:
    from stock_config import get_active_config
    from stock_config.bridges import build_label_policy, init_engine_from_config

    config = get_active_config()
    init_engine_from_config(config)
    plan = plan_labels(row, 1, 10, 0, policy=build_label_policy(config))
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from stock_config.schema import StockConfig
from stock_kernel.db.engine import init_engine_from_url
from stock_kernel.domain.label_policy import LabelPolicy, ListingPolicy


def build_label_policy(config: StockConfig) -> LabelPolicy:
    return LabelPolicy(
        approaching_limit_threshold=config.label.approaching_limit_threshold,
        default_barcode_type=config.label.default_barcode_type,
    )


def build_listing_policy(config: StockConfig) -> ListingPolicy:
    return ListingPolicy(
        default_limit=config.listing.default_limit,
        max_limit=config.listing.max_limit,
        recent_limit=config.listing.recent_limit,
    )


def init_engine_from_config(config: StockConfig) -> Engine:
    """Initialize the kernel's engine and session factory from settings."""
    return init_engine_from_url(config.database.url, echo=config.database.echo)
