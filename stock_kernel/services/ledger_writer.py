"""
LedgerWriter -- records a stock movement and its lines, all or nothing.

Responsibility:
    Validates a movement request, writes the header and every line through
    the MovementStore, snapshots the live price onto each line, and undoes
    its own writes when a later step fails.

Architecture position:
    Kernel > Services -- imperative shell.  Sign rules come from
    domain/movement_types.py, sequencing from domain/saga.py.

Invariants enforced:
    - Validation happens before the first store call; a ValidationError
      means the store was never touched.
    - Quantity sign follows the movement type (Inbound +, Outbound/Sale -,
      Adjustment/Transfer unchanged).
    - Price snapshot: each line's unit_price is read once, at write time.
    - Steps run strictly one after another; on failure the compensations
      run in reverse (lines, then header).  A call that raises a
      non-fatal error leaves no header and no lines behind.

Failure modes:
    - ValidationError subclasses: bad input, zero store calls.
    - StoreWriteError: the header insert failed; nothing was written.
    - ProductNotFoundError: a line's SKU has no product; rolled back.
    - PartialWriteError: a later store call failed; rolled back.
    - CompensationFailedError (fatal): a rollback delete failed; residue
      may remain and is logged at CRITICAL for an operator.

Audit relevance:
    Every write is traced with structured log events keyed by movement_id:
    movement_write_started, movement_line_written, movement_compensated,
    compensation_failed, movement_write_completed.
"""

from collections.abc import Sequence
from functools import partial
from uuid import UUID

from stock_kernel.domain.dtos import (
    LineRequest,
    MovementMetadata,
    MovementWithLines,
)
from stock_kernel.domain.movement_types import (
    MovementType,
    normalize_quantity,
    parse_movement_type,
)
from stock_kernel.domain.saga import CompensationStepError, Saga
from stock_kernel.domain.values import line_total, normalize_sku
from stock_kernel.exceptions import (
    CompensationFailedError,
    EmptyMovementError,
    InvalidLineError,
    MissingPerformerError,
    PartialWriteError,
    ProductNotFoundError,
    StoreWriteError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.services.movement_store import MovementStore
from stock_kernel.services.price_lookup import PriceLookup

logger = get_logger("services.ledger_writer")

_DELETE_HEADER = "delete_movement_header"
_DELETE_LINES = "delete_movement_lines_for_movement"


class LedgerWriter:
    """
    Writes movements through a MovementStore as a compensating saga.

    Contract:
        record_movement() either returns the completed movement with all of
        its lines, or raises a typed StockKernelError.

    Non-goals:
        - No SKU-level locking.  Concurrent sales may drive on-hand below
          zero; the ledger records what happened.
        - Does not check stock availability before an outbound movement.
    """

    def __init__(
        self,
        store: MovementStore,
        price_lookup: PriceLookup | None = None,
    ):
        self._store = store
        self._price_lookup = price_lookup or PriceLookup(store)

    def record_movement(
        self,
        movement_type: MovementType | str,
        lines: Sequence[LineRequest],
        metadata: MovementMetadata,
    ) -> MovementWithLines:
        """
        Record one movement with its lines.

        Args:
            movement_type: MovementType or one of its labels ("Stock In", ...).
            lines: Non-empty, ordered line requests.  Quantities are signed
                by movement type, so callers may pass them unsigned.
            metadata: Performer (required) and optional free text.

        Returns:
            MovementWithLines in COMPLETED status, lines in input order.
        """
        movement_type, lines, metadata = self._validate(movement_type, lines, metadata)

        with LogContext.bind(actor_id=metadata.performed_by):
            logger.info(
                "movement_write_started",
                extra={
                    "movement_type": movement_type.value,
                    "line_count": len(lines),
                },
            )

            saga = Saga("record_movement")

            try:
                header = saga.step(
                    "insert_movement_header",
                    partial(self._store.insert_movement_header, movement_type, metadata),
                )
            except Exception as exc:
                logger.error(
                    "movement_header_insert_failed",
                    extra={"movement_type": movement_type.value},
                    exc_info=True,
                )
                raise StoreWriteError("insert_movement_header", exc) from exc

            saga.register_compensation(
                _DELETE_HEADER,
                partial(self._store.delete_movement_header, header.id),
            )

            with LogContext.bind(movement_id=str(header.id)):
                records = []
                for index, line in enumerate(lines):
                    failed_step = "get_product_price"
                    try:
                        unit_price = saga.step(
                            f"get_product_price[{index}]",
                            partial(self._price_lookup.price_for, line.sku),
                        )
                        quantity = normalize_quantity(movement_type, line.quantity)
                        failed_step = "insert_movement_line"
                        record = saga.step(
                            f"insert_movement_line[{index}]",
                            partial(
                                self._store.insert_movement_line,
                                header.id,
                                line.sku,
                                quantity,
                                unit_price,
                                line_total(quantity, unit_price),
                                index,
                            ),
                            compensation=(
                                _DELETE_LINES,
                                partial(
                                    self._store.delete_movement_lines_for_movement,
                                    header.id,
                                ),
                            ),
                        )
                    except Exception as exc:
                        self._compensate(saga, header.id, exc, failed_step, index)
                        if isinstance(exc, ProductNotFoundError):
                            raise
                        raise PartialWriteError(
                            str(header.id), failed_step, exc, line_index=index
                        ) from exc

                    records.append(record)
                    logger.debug(
                        "movement_line_written",
                        extra={
                            "line_seq": index,
                            "line_sku": record.sku,
                            "quantity": record.quantity,
                            "unit_price": record.unit_price,
                            "total": record.total,
                        },
                    )

                try:
                    header = saga.step(
                        "complete_movement_header",
                        partial(self._store.complete_movement_header, header.id),
                    )
                except Exception as exc:
                    self._compensate(saga, header.id, exc, "complete_movement_header")
                    raise PartialWriteError(
                        str(header.id), "complete_movement_header", exc
                    ) from exc

                result = MovementWithLines(header=header, lines=tuple(records))
                logger.info(
                    "movement_write_completed",
                    extra={
                        "movement_type": movement_type.value,
                        "line_count": len(records),
                        "total_quantity": result.total_quantity,
                        "total_amount": result.total_amount,
                    },
                )
                return result

    def _validate(
        self,
        movement_type: MovementType | str,
        lines: Sequence[LineRequest],
        metadata: MovementMetadata | None,
    ) -> tuple[MovementType, tuple[LineRequest, ...], MovementMetadata]:
        if not lines:
            raise EmptyMovementError()

        normalized = []
        for index, line in enumerate(lines):
            sku = line.sku.strip() if isinstance(line.sku, str) else ""
            if not sku:
                raise InvalidLineError(index, "SKU is blank")
            quantity = line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise InvalidLineError(index, f"quantity must be an integer, got {quantity!r}")
            if quantity == 0:
                raise InvalidLineError(index, "quantity must not be zero")
            normalized.append(LineRequest(sku=normalize_sku(sku), quantity=quantity))

        resolved_type = parse_movement_type(movement_type)

        if metadata is None:
            raise MissingPerformerError()
        metadata = metadata.sanitized()
        if not metadata.performed_by:
            raise MissingPerformerError()

        return resolved_type, tuple(normalized), metadata

    def _compensate(
        self,
        saga: Saga,
        movement_id: UUID,
        original_error: Exception,
        failed_step: str,
        line_index: int | None = None,
    ) -> None:
        """
        Roll back this call's writes.

        Raises:
            CompensationFailedError: A compensating delete failed.
        """
        steps = saga.pending_compensations
        try:
            saga.compensate()
        except CompensationStepError as comp_exc:
            logger.critical(
                "compensation_failed",
                extra={
                    "failed_step": failed_step,
                    "line_index": line_index,
                    "compensation_step": comp_exc.step,
                    "original_error": repr(original_error),
                    "compensation_error": repr(comp_exc.error),
                    "completed_steps": list(saga.completed_steps),
                },
            )
            raise CompensationFailedError(
                str(movement_id), comp_exc.step, original_error, comp_exc.error
            ) from comp_exc.error

        logger.warning(
            "movement_compensated",
            extra={
                "failed_step": failed_step,
                "line_index": line_index,
                "compensations": list(steps),
                "error": repr(original_error),
            },
        )
