"""
MovementStore -- the persistence primitives the ledger writer is built on.

Responsibility:
    Declares the narrow set of single-row operations the ledger writer may
    use (insert/delete header, insert/delete lines, price lookup, stock
    query) and implements them over SQLAlchemy.

Architecture position:
    Kernel > Services -- imperative shell.  The ledger writer depends on the
    abstract MovementStore only, so tests substitute a recording double.

Invariants enforced:
    - SqlMovementStore runs every primitive in its own ``session_scope``.
      No primitive relies on another one's transaction; a caller that needs
      several rows written together must compensate on failure.
    - Deletes go through ``session.delete()`` so the immutability listeners
      fire.  Bulk ``delete()`` statements would bypass them.
    - Every return value is a frozen DTO, never an ORM instance.

Failure modes:
    - ProductNotFoundError from get_product_price() for an unknown SKU.
    - MovementNotFoundError when a header to delete/complete does not exist.
    - ImmutabilityViolationError when asked to delete a non-pending movement.
    - SQLAlchemyError (or any driver error) propagates unchanged from the
      primitive that hit it.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from stock_kernel.db.engine import session_scope
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import (
    MovementHeader,
    MovementLineRecord,
    MovementMetadata,
    StockRow,
)
from stock_kernel.domain.movement_types import MovementStatus, MovementType
from stock_kernel.domain.values import normalize_sku
from stock_kernel.exceptions import MovementNotFoundError, ProductNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.movement import Movement, MovementLine
from stock_kernel.models.product import Product
from stock_kernel.selectors.stock_selector import StockSelector

logger = get_logger("services.movement_store")


class MovementStore(ABC):
    """
    Single-row persistence primitives for movements.

    Contract:
        Each method is atomic on its own and on nothing else.
    """

    @abstractmethod
    def insert_movement_header(
        self,
        movement_type: MovementType,
        metadata: MovementMetadata,
    ) -> MovementHeader:
        """Insert a PENDING movement header."""

    @abstractmethod
    def delete_movement_header(self, movement_id: UUID) -> None:
        """Delete a PENDING movement header (compensation)."""

    @abstractmethod
    def get_product_price(self, sku: str) -> Decimal:
        """Live unit price of a product."""

    @abstractmethod
    def insert_movement_line(
        self,
        movement_id: UUID,
        sku: str,
        signed_quantity: int,
        unit_price: Decimal,
        total: Decimal,
        line_seq: int,
    ) -> MovementLineRecord:
        """Insert one line of a PENDING movement."""

    @abstractmethod
    def delete_movement_lines_for_movement(self, movement_id: UUID) -> None:
        """Delete every line of a PENDING movement (compensation)."""

    @abstractmethod
    def query_current_stock(self, sku: str | None = None) -> list[StockRow]:
        """Current stock rows, optionally for a single SKU."""

    @abstractmethod
    def complete_movement_header(self, movement_id: UUID) -> MovementHeader:
        """Flip a PENDING header to COMPLETED."""


class SqlMovementStore(MovementStore):
    """
    MovementStore over a SQLAlchemy session factory.

    Guarantees:
        - One short transaction per call (commit on success, rollback and
          re-raise on failure).
        - occurred_at comes from the injected clock.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def insert_movement_header(
        self,
        movement_type: MovementType,
        metadata: MovementMetadata,
    ) -> MovementHeader:
        with session_scope(self._session_factory) as session:
            movement = Movement(
                occurred_at=self._clock.now(),
                movement_type=movement_type.value,
                status=MovementStatus.PENDING.value,
                performed_by=metadata.performed_by,
                reference=metadata.reference,
                notes=metadata.notes,
                customer_name=metadata.customer_name,
            )
            session.add(movement)
            session.flush()
            header = MovementHeader.from_model(movement)

        logger.debug(
            "movement_header_inserted",
            extra={"movement_id": str(header.id), "movement_type": movement_type.value},
        )
        return header

    def delete_movement_header(self, movement_id: UUID) -> None:
        with session_scope(self._session_factory) as session:
            movement = self._get_movement(session, movement_id)
            session.delete(movement)

        logger.debug("movement_header_deleted", extra={"movement_id": str(movement_id)})

    def get_product_price(self, sku: str) -> Decimal:
        sku = normalize_sku(sku)
        with session_scope(self._session_factory) as session:
            price = session.execute(
                select(Product.price).where(Product.sku == sku)
            ).scalar_one_or_none()

        if price is None:
            raise ProductNotFoundError(sku)
        return price

    def insert_movement_line(
        self,
        movement_id: UUID,
        sku: str,
        signed_quantity: int,
        unit_price: Decimal,
        total: Decimal,
        line_seq: int,
    ) -> MovementLineRecord:
        with session_scope(self._session_factory) as session:
            line = MovementLine(
                movement_id=movement_id,
                sku=normalize_sku(sku),
                quantity=signed_quantity,
                unit_price=unit_price,
                total=total,
                line_seq=line_seq,
            )
            session.add(line)
            session.flush()
            record = MovementLineRecord.from_model(line)

        return record

    def delete_movement_lines_for_movement(self, movement_id: UUID) -> None:
        with session_scope(self._session_factory) as session:
            lines = session.execute(
                select(MovementLine).where(MovementLine.movement_id == movement_id)
            ).scalars().all()
            for line in lines:
                session.delete(line)
            deleted = len(lines)

        logger.debug(
            "movement_lines_deleted",
            extra={"movement_id": str(movement_id), "line_count": deleted},
        )

    def query_current_stock(self, sku: str | None = None) -> list[StockRow]:
        with session_scope(self._session_factory) as session:
            return StockSelector(session).current_stock(sku)

    def complete_movement_header(self, movement_id: UUID) -> MovementHeader:
        with session_scope(self._session_factory) as session:
            movement = self._get_movement(session, movement_id)
            movement.status = MovementStatus.COMPLETED.value
            session.flush()
            return MovementHeader.from_model(movement)

    @staticmethod
    def _get_movement(session: Session, movement_id: UUID) -> Movement:
        movement = session.get(Movement, movement_id)
        if movement is None:
            raise MovementNotFoundError(str(movement_id))
        return movement
