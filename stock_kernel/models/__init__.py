"""ORM models for the stock kernel."""

from stock_kernel.models.movement import Movement, MovementLine
from stock_kernel.models.product import DEFAULT_MIN_STOCK_THRESHOLD, Product

__all__ = [
    "DEFAULT_MIN_STOCK_THRESHOLD",
    "Movement",
    "MovementLine",
    "Product",
]
