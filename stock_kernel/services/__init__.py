"""Services for the stock kernel (write side)."""

from stock_kernel.services.ledger_writer import LedgerWriter
from stock_kernel.services.movement_service import MovementService
from stock_kernel.services.movement_store import MovementStore, SqlMovementStore
from stock_kernel.services.price_lookup import PriceLookup

__all__ = [
    "LedgerWriter",
    "MovementService",
    "MovementStore",
    "PriceLookup",
    "SqlMovementStore",
]
