"""
Movement types, statuses and quantity sign normalization.

Responsibility:
    Declares the closed set of movement types and statuses and the per-type
    rule that turns a caller-supplied quantity into the signed quantity that
    is persisted on a movement line.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by models/
    (column values) and services/ (ledger writer).

Sign table:
    Inbound                -> abs(quantity)
    Outbound, Sale         -> -abs(quantity)
    Adjustment, Transfer   -> quantity unchanged
"""

from enum import Enum

from stock_kernel.exceptions import UnknownMovementTypeError


class MovementType(str, Enum):
    """Kind of stock event recorded by a movement header."""

    INBOUND = "Inbound"
    OUTBOUND = "Outbound"
    ADJUSTMENT = "Adjustment"
    SALE = "Sale"
    TRANSFER = "Transfer"


class MovementStatus(str, Enum):
    """Lifecycle status of a movement.

    Contract: PENDING -> COMPLETED -> CANCELLED.  A PENDING movement only
    exists while the ledger writer is in flight; it is either completed or
    deleted by compensation.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Labels used by the shop's screens and older data
_ALIASES: dict[str, MovementType] = {
    "stock in": MovementType.INBOUND,
    "stock-in": MovementType.INBOUND,
    "delivery": MovementType.INBOUND,
    "stock out": MovementType.OUTBOUND,
    "stock-out": MovementType.OUTBOUND,
}

_FORCE_POSITIVE = frozenset({MovementType.INBOUND})
_FORCE_NEGATIVE = frozenset({MovementType.OUTBOUND, MovementType.SALE})


def parse_movement_type(value: "MovementType | str") -> MovementType:
    """
    Resolve a movement type from an enum member, its value, or an alias.

    Matching on strings is case-insensitive and ignores surrounding spaces.

    Raises:
        UnknownMovementTypeError: If the value names no movement type.
    """
    if isinstance(value, MovementType):
        return value
    if not isinstance(value, str):
        raise UnknownMovementTypeError(repr(value))

    key = value.strip().lower()
    for member in MovementType:
        if member.value.lower() == key:
            return member
    if key in _ALIASES:
        return _ALIASES[key]
    raise UnknownMovementTypeError(value)


def normalize_quantity(movement_type: MovementType, quantity: int) -> int:
    """
    Apply the sign rule of ``movement_type`` to one line quantity.

    Postconditions: abs(result) == abs(quantity).
    """
    if movement_type in _FORCE_POSITIVE:
        return abs(quantity)
    if movement_type in _FORCE_NEGATIVE:
        return -abs(quantity)
    return quantity
