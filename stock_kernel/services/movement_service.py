"""
MovementService -- lifecycle changes on already-recorded movements.

Responsibility:
    Cancels completed movements.  Cancellation is a status flip; the lines
    stay in the log and the stock selector simply stops counting them.

Architecture position:
    Kernel > Services.  Flushes inside the caller's transaction (see
    services/base.py); the caller commits.

Failure modes:
    - MovementNotFoundError for an unknown movement id.
    - MovementNotCancellableError when the movement is pending (a write in
      flight) or already cancelled.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import MovementHeader
from stock_kernel.domain.movement_types import MovementStatus
from stock_kernel.exceptions import (
    MovementNotCancellableError,
    MovementNotFoundError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.movement import Movement
from stock_kernel.services.base import BaseService

logger = get_logger("services.movement")


class MovementService(BaseService):
    """Status transitions on persisted movements."""

    def __init__(self, session: Session):
        super().__init__(session)

    def cancel_movement(self, movement_id: UUID, actor_id: str) -> MovementHeader:
        """
        Flip a COMPLETED movement to CANCELLED.

        Postconditions: The movement's lines no longer count toward on-hand
            stock once the caller commits.
        """
        movement = self.session.get(Movement, movement_id)
        if movement is None:
            raise MovementNotFoundError(str(movement_id))

        status = MovementStatus(movement.status)
        if status != MovementStatus.COMPLETED:
            raise MovementNotCancellableError(str(movement_id), status.value)

        movement.status = MovementStatus.CANCELLED.value
        self.session.flush()

        with LogContext.bind(movement_id=str(movement_id), actor_id=actor_id):
            logger.info(
                "movement_cancelled",
                extra={
                    "movement_type": movement.movement_type,
                    "line_count": len(movement.lines),
                },
            )

        return MovementHeader.from_model(movement)
