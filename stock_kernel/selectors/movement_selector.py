"""
Module: stock_kernel.selectors.movement_selector
Responsibility: Read-only movement history: one movement with its lines, and
    paged listings newest first.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Page sizes are clamped by the ListingPolicy (1..max_limit), offsets to
      >= 0, so a caller can never request an unbounded page.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import MovementWithLines
from stock_kernel.domain.label_policy import ListingPolicy
from stock_kernel.domain.movement_types import MovementType, parse_movement_type
from stock_kernel.domain.values import normalize_sku
from stock_kernel.exceptions import MovementNotFoundError
from stock_kernel.models.movement import Movement, MovementLine
from stock_kernel.selectors.base import BaseSelector


class MovementSelector(BaseSelector):
    """Movement history queries."""

    def __init__(self, session: Session, policy: ListingPolicy | None = None):
        super().__init__(session)
        self.policy = policy or ListingPolicy()

    def get_movement(self, movement_id: UUID) -> MovementWithLines:
        movement = self.session.get(Movement, movement_id)
        if movement is None:
            raise MovementNotFoundError(str(movement_id))
        return MovementWithLines.from_model(movement)

    def list_movements(
        self,
        limit: int | None = None,
        offset: int | None = None,
        movement_type: MovementType | str | None = None,
        sku: str | None = None,
    ) -> list[MovementWithLines]:
        """
        Movements newest first, optionally of one type or touching one SKU.

        Args:
            limit: Page size; None means the policy default.
            offset: Rows to skip.
            movement_type: MovementType or label; unknown labels raise
                UnknownMovementTypeError.
            sku: Only movements with at least one line for this SKU.
        """
        query = select(Movement)

        if movement_type is not None:
            query = query.where(
                Movement.movement_type == parse_movement_type(movement_type).value
            )

        if sku is not None:
            query = query.where(
                Movement.id.in_(
                    select(MovementLine.movement_id).where(
                        MovementLine.sku == normalize_sku(sku)
                    )
                )
            )

        query = (
            query.order_by(Movement.occurred_at.desc(), Movement.created_at.desc())
            .limit(self.policy.clamp_limit(limit))
            .offset(self.policy.clamp_offset(offset))
        )

        return [
            MovementWithLines.from_model(movement)
            for movement in self.session.execute(query).scalars().all()
        ]

    def recent_movements(self, limit: int | None = None) -> list[MovementWithLines]:
        return self.list_movements(
            limit=self.policy.recent_limit if limit is None else limit
        )
