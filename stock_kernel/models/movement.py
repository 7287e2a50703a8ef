"""
Module: stock_kernel.models.movement
Responsibility: ORM persistence for stock movements (headers) and movement
    lines -- the append-only log from which all stock figures are derived.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain enums only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - quantity != 0 on every line (CHECK constraint).
    - Price snapshot: unit_price is copied from the product when the line is
      written and never re-read.  Lines are never updated
      (db/immutability.py).
    - Lines and headers may only be deleted while the movement is PENDING,
      i.e. during compensation of an in-flight write.

Failure modes:
    - IntegrityError if a line references an unknown SKU or movement.
    - ImmutabilityViolationError on UPDATE of a line or DELETE of a
      non-pending movement/line.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.movement_types import MovementStatus, MovementType


class Movement(TrackedBase):
    """
    Movement header -- one stock event (delivery, sale, adjustment, ...).

    Contract:
        Created by the ledger writer as PENDING together with at least one
        line, then flipped to COMPLETED.  A COMPLETED movement may only be
        flipped to CANCELLED; nothing else on it changes.

    Non-goals:
        - Does not validate line signs; the ledger writer normalizes them
          before insert.
    """

    __tablename__ = "stock_movements"

    __table_args__ = (
        Index("idx_movement_type", "movement_type"),
        Index("idx_movement_occurred_at", "occurred_at"),
        Index("idx_movement_performed_by", "performed_by"),
        Index("idx_movement_status", "status"),
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    movement_type: Mapped[MovementType] = mapped_column(
        String(20),
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    performed_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    status: Mapped[MovementStatus] = mapped_column(
        String(20),
        default=MovementStatus.PENDING,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        String(4000),
        nullable=True,
    )

    # Optional, for sales
    customer_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    lines: Mapped[list["MovementLine"]] = relationship(
        back_populates="movement",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MovementLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<Movement {self.id} {self.movement_type} status={self.status}>"

    @property
    def is_pending(self) -> bool:
        return self.status == MovementStatus.PENDING

    @property
    def is_cancelled(self) -> bool:
        return self.status == MovementStatus.CANCELLED


class MovementLine(TrackedBase):
    """
    One product/quantity/price entry of a movement.

    Guarantees:
        - quantity is signed: positive adds stock, negative removes it.
        - total == quantity * unit_price, computed once at write time.
        - line_seq is the 0-based position of the line in the caller's input.
    """

    __tablename__ = "stock_movement_lines"

    __table_args__ = (
        CheckConstraint("quantity != 0", name="ck_movement_line_quantity_non_zero"),
        Index("idx_movement_line_movement", "movement_id"),
        Index("idx_movement_line_sku", "sku"),
    )

    movement_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("stock_movements.id"),
        nullable=False,
    )

    sku: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("products.sku"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # Price snapshot at write time
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    movement: Mapped["Movement"] = relationship(
        back_populates="lines",
    )

    def __repr__(self) -> str:
        return f"<MovementLine {self.sku} {self.quantity:+d} @ {self.unit_price}>"
