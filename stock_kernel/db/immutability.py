"""
ORM-level immutability enforcement for the movement log.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity        | Frozen when                       | Why
--------------|-----------------------------------|------------------------------
MovementLine  | ALWAYS for UPDATE                 | Price snapshot must never drift
MovementLine  | DELETE once movement not PENDING  | Stock history is append-only
Movement      | Every field once not PENDING,     | Completed movements are facts;
              | except COMPLETED -> CANCELLED     | cancelling is a status flip
Movement      | DELETE once not PENDING           | Only rollback deletes headers

PENDING movements are the ledger writer's in-flight work; compensation must be
able to delete them and their lines.

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at changes are allowed (audit metadata, not ledger data).

2. Status transitions are read from SQLAlchemy attribute history, so the
   check sees the value that was in the database before this flush.

3. Bulk ``delete()``/``update()`` statements bypass mapper events.  The
   movement store always deletes through the ORM so these listeners fire.

===============================================================================
USAGE
===============================================================================

    from stock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

===============================================================================
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from stock_kernel.domain.movement_types import MovementStatus
from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})

# (old, new) status pairs allowed on an existing movement
_ALLOWED_TRANSITIONS = frozenset({
    (MovementStatus.PENDING, MovementStatus.COMPLETED),
    (MovementStatus.PENDING, MovementStatus.CANCELLED),
    (MovementStatus.COMPLETED, MovementStatus.CANCELLED),
})


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, **fields) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            **fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_movement_update(mapper, connection, target):
    """
    Allow edits to PENDING movements and the legal status transitions only.
    """
    status_history = get_history(target, "status")

    if status_history.deleted:
        old_status = MovementStatus(status_history.deleted[0])
        new_status = MovementStatus(target.status)
        if old_status == new_status:
            return
        if (old_status, new_status) not in _ALLOWED_TRANSITIONS:
            _blocked(
                "Movement", str(target.id), "UPDATE",
                f"Illegal status transition {old_status.value} -> {new_status.value}",
                field="status",
            )
        if old_status == MovementStatus.PENDING:
            return
    elif MovementStatus(target.status) == MovementStatus.PENDING:
        return

    # Movement was already completed/cancelled: only status may have moved
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS or attr.key in ("status", "lines"):
            continue
        if attr.history.has_changes():
            _blocked(
                "Movement", str(target.id), "UPDATE",
                f"Cannot modify field '{attr.key}' on a committed movement",
                field=attr.key,
            )


def _check_movement_delete(mapper, connection, target):
    """Only in-flight (PENDING) movements may be deleted."""
    if MovementStatus(target.status) != MovementStatus.PENDING:
        _blocked(
            "Movement", str(target.id), "DELETE",
            "Committed movements cannot be deleted; cancel them instead",
        )


def _check_movement_line_update(mapper, connection, target):
    """Movement lines are never updated."""
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS or attr.key == "movement":
            continue
        if attr.history.has_changes():
            _blocked(
                "MovementLine", str(target.id), "UPDATE",
                "Movement lines cannot be modified",
                field=attr.key,
            )


def _check_movement_line_delete(mapper, connection, target):
    """Lines may only be deleted while their movement is PENDING."""
    movement = target.movement
    if movement is not None and MovementStatus(movement.status) != MovementStatus.PENDING:
        _blocked(
            "MovementLine", str(target.id), "DELETE",
            "Lines of a committed movement cannot be deleted",
        )


_LISTENERS = (
    ("Movement", "before_update", _check_movement_update),
    ("Movement", "before_delete", _check_movement_delete),
    ("MovementLine", "before_update", _check_movement_line_update),
    ("MovementLine", "before_delete", _check_movement_line_delete),
)


def _targets():
    from stock_kernel.models.movement import Movement, MovementLine

    return {"Movement": Movement, "MovementLine": MovementLine}


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    targets = _targets()
    for name, event_name, listener_fn in _LISTENERS:
        if not event.contains(targets[name], event_name, listener_fn):
            event.listen(targets[name], event_name, listener_fn)
