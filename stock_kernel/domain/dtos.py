"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the kernel boundary:
    LineRequest and MovementMetadata (ledger writer input), MovementHeader,
    MovementLineRecord and MovementWithLines (persistence boundary output),
    and the read-side rows StockRow and PeriodSummaryRow.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from the
    store and selectors (never from domain logic).

Invariants enforced:
    - Services and selectors return these DTOs, never ORM entities, so
      callers cannot lazily load or mutate ledger rows.

Data flow:
    LineRequest -> (ledger writer) -> MovementLineRecord
    MovementMetadata -> (ledger writer) -> MovementHeader
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from stock_kernel.domain.movement_types import MovementStatus, MovementType

if TYPE_CHECKING:
    from stock_kernel.models.movement import Movement, MovementLine


@dataclass(frozen=True)
class LineRequest:
    """One requested line: a SKU and a caller-signed quantity."""

    sku: str
    quantity: int


@dataclass(frozen=True)
class MovementMetadata:
    """
    Who performed a movement and the optional free-text context.

    The performer is passed explicitly; the kernel never reads it from an
    ambient session.
    """

    performed_by: str
    reference: str | None = None
    notes: str | None = None
    customer_name: str | None = None

    def sanitized(self) -> MovementMetadata:
        """Trim every field; blank optional fields become None."""
        return MovementMetadata(
            performed_by=(self.performed_by or "").strip(),
            reference=_blank_to_none(self.reference),
            notes=_blank_to_none(self.notes),
            customer_name=_blank_to_none(self.customer_name),
        )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class MovementHeader:
    """A persisted movement header."""

    id: UUID
    movement_type: MovementType
    status: MovementStatus
    occurred_at: datetime
    performed_by: str
    reference: str | None = None
    notes: str | None = None
    customer_name: str | None = None

    @classmethod
    def from_model(cls, model: Movement) -> MovementHeader:
        return cls(
            id=model.id,
            movement_type=MovementType(model.movement_type),
            status=MovementStatus(model.status),
            occurred_at=model.occurred_at,
            performed_by=model.performed_by,
            reference=model.reference,
            notes=model.notes,
            customer_name=model.customer_name,
        )


@dataclass(frozen=True)
class MovementLineRecord:
    """A persisted movement line with its price snapshot."""

    id: UUID
    movement_id: UUID
    sku: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    line_seq: int

    @classmethod
    def from_model(cls, model: MovementLine) -> MovementLineRecord:
        return cls(
            id=model.id,
            movement_id=model.movement_id,
            sku=model.sku,
            quantity=model.quantity,
            unit_price=model.unit_price,
            total=model.total,
            line_seq=model.line_seq,
        )


@dataclass(frozen=True)
class MovementWithLines:
    """
    A logically committed movement: the header with every line attached.

    Returned by the ledger writer only after all lines were written.
    """

    header: MovementHeader
    lines: tuple[MovementLineRecord, ...]

    @property
    def id(self) -> UUID:
        return self.header.id

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_amount(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal("0"))

    @classmethod
    def from_model(cls, model: Movement) -> MovementWithLines:
        return cls(
            header=MovementHeader.from_model(model),
            lines=tuple(
                MovementLineRecord.from_model(line)
                for line in sorted(model.lines, key=lambda l: l.line_seq)
            ),
        )


@dataclass(frozen=True)
class StockRow:
    """
    Current stock of one product.

    on_hand is derived from movement lines; total_value uses the live price.
    """

    sku: str
    name: str
    volume_ml: int
    price: Decimal
    min_stock_threshold: int
    on_hand: int
    total_value: Decimal
    description: str | None = None
    barcode_type: str | None = None

    @property
    def is_low_stock(self) -> bool:
        return self.on_hand <= self.min_stock_threshold


@dataclass(frozen=True)
class PeriodSummaryRow:
    """Inventory movement of one product over a date range."""

    sku: str
    name: str
    volume_ml: int
    price: Decimal
    beginning_inventory: int
    total_inbound: int
    total_outbound: int

    @property
    def ending_inventory(self) -> int:
        return self.beginning_inventory + self.total_inbound - self.total_outbound

    @property
    def inventory_value(self) -> Decimal:
        return Decimal(self.ending_inventory) * self.price
