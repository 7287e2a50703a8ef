"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A caller of the ledger must be able to tell "nothing happened, fix your
input" apart from "something happened and an operator may need to look"
without reading the message text. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (sku, movement_id, line_index, ...)

Example - WRONG way to handle errors:
    try:
        writer.record_movement(MovementType.SALE, lines, metadata)
    except Exception as e:
        if "not found" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way:
    try:
        writer.record_movement(MovementType.SALE, lines, metadata)
    except ProductNotFoundError as e:
        show_error(code=e.code, sku=e.sku)
    except CompensationFailure as e:
        page_operator(e)  # Residue may be left in the store

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- ValidationError                   (no store call was made)
    |   +-- EmptyMovementError
    |   +-- InvalidLineError
    |   +-- UnknownMovementTypeError
    |   +-- MissingPerformerError
    |   +-- InvalidUnitNumberError
    |   +-- InvalidUnitCodeError
    |   +-- InvalidLabelRequestError
    |   +-- LabelQuantityExceedsStockError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- MovementNotFoundError
    |
    +-- LedgerWriteError                  (store returned to pre-call state)
    |   +-- StoreWriteError
    |   +-- PartialWriteError
    |
    +-- ExhaustionError
    |   +-- UnitRangeExhaustedError
    |
    +-- MovementStateError
    |   +-- MovementNotCancellableError
    |
    +-- ImmutabilityViolationError
    |
    +-- CompensationFailure               (FATAL - manual reconciliation)
        +-- CompensationFailedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|-------------------------------------
Validation    | EMPTY_MOVEMENT                | Movement has no lines
              | INVALID_LINE                  | Blank SKU or zero quantity
              | UNKNOWN_MOVEMENT_TYPE         | Type outside the enumeration
              | MISSING_PERFORMER             | No performer identifier
              | INVALID_UNIT_NUMBER           | Unit number or count below 1
              | INVALID_UNIT_CODE             | Scanned code cannot be parsed
              | INVALID_LABEL_REQUEST         | Label start/quantity below 1
              | LABEL_QUANTITY_EXCEEDS_STOCK  | More labels than units on hand
--------------|-------------------------------|-------------------------------------
Not found     | PRODUCT_NOT_FOUND             | SKU has no product/price record
              | MOVEMENT_NOT_FOUND            | Movement ID doesn't exist
--------------|-------------------------------|-------------------------------------
Write         | STORE_WRITE_FAILED            | Header insert failed (nothing written)
              | PARTIAL_WRITE                 | Later write failed, compensated
--------------|-------------------------------|-------------------------------------
Exhaustion    | UNIT_RANGE_EXHAUSTED          | Unit range passes the 9999 ceiling
--------------|-------------------------------|-------------------------------------
State         | MOVEMENT_NOT_CANCELLABLE      | Pending or already cancelled
              | IMMUTABILITY_VIOLATION        | Modifying a frozen row
--------------|-------------------------------|-------------------------------------
Fatal         | COMPENSATION_FAILED           | A rollback delete itself failed

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ``fatal`` is a class attribute. Only CompensationFailure sets it; every
   other error guarantees the store holds no residue from the failed call.

2. Write errors keep the underlying store error in ``cause`` and chain it
   via ``raise ... from``, so the traceback shows both.

===============================================================================
"""


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"
    fatal: bool = False


# Validation exceptions


class ValidationError(StockKernelError):
    """Malformed input, detected before any store call."""

    code: str = "VALIDATION_ERROR"


class EmptyMovementError(ValidationError):
    """A movement must carry at least one line."""

    code: str = "EMPTY_MOVEMENT"

    def __init__(self):
        super().__init__("At least one movement line is required")


class InvalidLineError(ValidationError):
    """A movement line has a blank SKU or a zero/non-integer quantity."""

    code: str = "INVALID_LINE"

    def __init__(self, line_index: int, reason: str):
        self.line_index = line_index
        self.reason = reason
        super().__init__(f"Invalid movement line {line_index}: {reason}")


class UnknownMovementTypeError(ValidationError):
    """Movement type is not one of the enumerated types."""

    code: str = "UNKNOWN_MOVEMENT_TYPE"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"Unknown movement type: {movement_type!r}")


class MissingPerformerError(ValidationError):
    """Movement metadata has no performer identifier."""

    code: str = "MISSING_PERFORMER"

    def __init__(self):
        super().__init__("A performer identifier is required")


class InvalidUnitNumberError(ValidationError):
    """Unit number or unit count is below 1."""

    code: str = "INVALID_UNIT_NUMBER"

    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be at least 1, got {value}")


class InvalidUnitCodeError(ValidationError):
    """A unit barcode string does not follow SKU-ATTR-NNN."""

    code: str = "INVALID_UNIT_CODE"

    def __init__(self, unit_code: str, reason: str):
        self.unit_code = unit_code
        self.reason = reason
        super().__init__(f"Invalid unit code {unit_code!r}: {reason}")


class InvalidLabelRequestError(ValidationError):
    """Label start unit or quantity is below 1."""

    code: str = "INVALID_LABEL_REQUEST"

    def __init__(self, sku: str, reason: str):
        self.sku = sku
        self.reason = reason
        super().__init__(f"Invalid label request for {sku}: {reason}")


class LabelQuantityExceedsStockError(ValidationError):
    """More unit labels requested than units physically on hand."""

    code: str = "LABEL_QUANTITY_EXCEEDS_STOCK"

    def __init__(self, sku: str, requested_quantity: int, on_hand: int):
        self.sku = sku
        self.requested_quantity = requested_quantity
        self.on_hand = on_hand
        super().__init__(
            f"Cannot print {requested_quantity} labels for {sku}: "
            f"only {on_hand} on hand"
        )


# Not-found exceptions


class NotFoundError(StockKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """SKU has no product (and therefore no price) record."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"Product not found: {sku}")


class MovementNotFoundError(NotFoundError):
    """Movement with given ID was not found."""

    code: str = "MOVEMENT_NOT_FOUND"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Movement not found: {movement_id}")


# Write exceptions


class LedgerWriteError(StockKernelError):
    """
    Base exception for failed ledger writes.

    Whenever one of these is raised, every row written by the failed call
    has already been compensated.
    """

    code: str = "LEDGER_WRITE_ERROR"


class StoreWriteError(LedgerWriteError):
    """The first store write (movement header) failed; nothing was written."""

    code: str = "STORE_WRITE_FAILED"

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store write '{operation}' failed: {cause}")


class PartialWriteError(LedgerWriteError):
    """
    A write failed after at least one earlier write succeeded.

    The earlier writes were compensated before this error was raised.
    """

    code: str = "PARTIAL_WRITE"

    def __init__(
        self,
        movement_id: str,
        failed_step: str,
        cause: BaseException,
        line_index: int | None = None,
    ):
        self.movement_id = movement_id
        self.failed_step = failed_step
        self.line_index = line_index
        self.cause = cause
        super().__init__(
            f"Movement {movement_id} rolled back after '{failed_step}' failed: {cause}"
        )


# Exhaustion exceptions


class ExhaustionError(StockKernelError):
    """Base exception for bounded identifier spaces running out."""

    code: str = "EXHAUSTION"


class UnitRangeExhaustedError(ExhaustionError):
    """Requested unit range would include a unit number above the ceiling."""

    code: str = "UNIT_RANGE_EXHAUSTED"

    def __init__(self, sku: str, start_unit: int, count: int, max_unit: int):
        self.sku = sku
        self.start_unit = start_unit
        self.count = count
        self.end_unit = start_unit + count - 1
        self.max_unit = max_unit
        super().__init__(
            f"Unit range {start_unit}-{self.end_unit} for {sku} exceeds "
            f"maximum unit number {max_unit}"
        )


# Movement state exceptions


class MovementStateError(StockKernelError):
    """Base exception for illegal movement status transitions."""

    code: str = "MOVEMENT_STATE_ERROR"


class MovementNotCancellableError(MovementStateError):
    """Only completed movements can be cancelled."""

    code: str = "MOVEMENT_NOT_CANCELLABLE"

    def __init__(self, movement_id: str, status: str):
        self.movement_id = movement_id
        self.status = status
        super().__init__(
            f"Movement {movement_id} cannot be cancelled from status '{status}'"
        )


class ImmutabilityViolationError(StockKernelError):
    """Attempted to modify or delete a frozen ledger row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id} is immutable: {reason}")


# Fatal exceptions


class CompensationFailure(StockKernelError):
    """
    Base exception for failed rollbacks.

    FATAL: the "no partial residue" guarantee no longer holds. Never retried
    automatically; requires manual reconciliation.
    """

    code: str = "COMPENSATION_FAILURE"
    fatal: bool = True


class CompensationFailedError(CompensationFailure):
    """A compensating delete failed while rolling back a movement write."""

    code: str = "COMPENSATION_FAILED"

    def __init__(
        self,
        movement_id: str,
        compensation_step: str,
        original_error: BaseException,
        compensation_error: BaseException,
    ):
        self.movement_id = movement_id
        self.compensation_step = compensation_step
        self.original_error = original_error
        self.compensation_error = compensation_error
        super().__init__(
            f"Rollback of movement {movement_id} failed at '{compensation_step}': "
            f"{compensation_error} (original error: {original_error})"
        )
