"""Selectors for the stock kernel (read side)."""

from stock_kernel.selectors.movement_selector import MovementSelector
from stock_kernel.selectors.stock_selector import StockSelector

__all__ = [
    "MovementSelector",
    "StockSelector",
]
