"""
PriceLookup -- current unit price of a product.

Read-only leaf collaborator of the ledger writer.  Every call re-reads the
store; there is no price cache, so a price change is visible to the next
line written.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from stock_kernel.domain.values import normalize_sku

if TYPE_CHECKING:
    from stock_kernel.services.movement_store import MovementStore


class PriceLookup:
    """Resolves a SKU to its live unit price through the movement store."""

    def __init__(self, store: "MovementStore"):
        self._store = store

    def price_for(self, sku: str) -> Decimal:
        """
        Raises:
            ProductNotFoundError: No product carries this SKU.
        """
        return self._store.get_product_price(normalize_sku(sku))
