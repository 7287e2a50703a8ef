"""
Values -- SKU and money rules shared by every layer.

SKUs are compared in their normalized (trimmed, upper-case) form.  Prices
and totals are Decimal, never float.
"""

from decimal import Decimal


def normalize_sku(sku: str) -> str:
    """
    Normalize a SKU for storage and comparison.

    Example:
        normalize_sku("  dior-sauvage ") -> "DIOR-SAUVAGE"
    """
    return sku.strip().upper()


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    """
    Total of a movement line: signed quantity times the snapshotted price.

    The sign follows the quantity, so outbound lines have negative totals.
    """
    return Decimal(quantity) * unit_price
