"""
Module: stock_kernel.selectors.stock_selector
Responsibility: Current stock projection and the inventory reports derived
    from it (low stock, period summary).  On-hand is never stored; it is the
    sum of signed line quantities of every non-cancelled movement, computed
    per query.
Architecture position: Kernel > Selectors.  May import from models/, db/ and
    domain/.  MUST NOT import from services/.

Invariants enforced:
    - on_hand(sku) == sum(line.quantity) over lines of that SKU whose
      movement status is not cancelled.  Products without lines report 0.
    - total_value uses the live product price, not the line price snapshots.

Failure modes:
    - ProductNotFoundError from get_stock_row()/on_hand() for unknown SKUs.
    - ValidationError from period_summary() when start > end.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import PeriodSummaryRow, StockRow
from stock_kernel.domain.movement_types import MovementStatus
from stock_kernel.domain.values import normalize_sku
from stock_kernel.exceptions import ProductNotFoundError, ValidationError
from stock_kernel.models.movement import Movement, MovementLine
from stock_kernel.models.product import Product
from stock_kernel.selectors.base import BaseSelector


class StockSelector(BaseSelector):
    """
    Read-only stock queries over the movement log.

    Guarantees:
        - Rows are ordered by product name, then SKU.
        - Quantities are ints and values Decimals (never floats).
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def current_stock(self, sku: str | None = None) -> list[StockRow]:
        """
        On-hand quantity and value of every product (or one SKU).

        An unknown SKU filter yields an empty list.
        """
        # Aggregate in a subquery so that a product whose lines all belong to
        # cancelled movements still appears (with 0) in the outer join.
        totals = (
            select(
                MovementLine.sku.label("sku"),
                func.sum(MovementLine.quantity).label("on_hand"),
            )
            .join(Movement, MovementLine.movement_id == Movement.id)
            .where(Movement.status != MovementStatus.CANCELLED.value)
            .group_by(MovementLine.sku)
            .subquery()
        )

        query = (
            select(Product, func.coalesce(totals.c.on_hand, 0))
            .outerjoin(totals, totals.c.sku == Product.sku)
            .order_by(Product.name, Product.sku)
        )
        if sku is not None:
            query = query.where(Product.sku == normalize_sku(sku))

        return [
            self._to_row(product, int(on_hand))
            for product, on_hand in self.session.execute(query).all()
        ]

    def get_stock_row(self, sku: str) -> StockRow:
        rows = self.current_stock(sku)
        if not rows:
            raise ProductNotFoundError(normalize_sku(sku))
        return rows[0]

    def on_hand(self, sku: str) -> int:
        return self.get_stock_row(sku).on_hand

    def low_stock(self, limit: int | None = None) -> list[StockRow]:
        """Products at or below their minimum threshold, lowest on-hand first."""
        rows = [row for row in self.current_stock() if row.is_low_stock]
        rows.sort(key=lambda row: (row.on_hand, row.name, row.sku))
        if limit is not None:
            rows = rows[: max(limit, 0)]
        return rows

    def period_summary(self, start: datetime, end: datetime) -> list[PeriodSummaryRow]:
        """
        Beginning inventory, inbound and outbound per product for [start, end].

        Beginning inventory counts every non-cancelled line before ``start``;
        inbound/outbound split the lines inside the range by sign.
        """
        if start > end:
            raise ValidationError(
                f"Period start {start.isoformat()} is after end {end.isoformat()}"
            )

        before = Movement.occurred_at < start
        within = and_(Movement.occurred_at >= start, Movement.occurred_at <= end)

        totals = (
            select(
                MovementLine.sku.label("sku"),
                func.sum(
                    case((before, MovementLine.quantity), else_=0)
                ).label("beginning"),
                func.sum(
                    case(
                        (and_(within, MovementLine.quantity > 0), MovementLine.quantity),
                        else_=0,
                    )
                ).label("inbound"),
                func.sum(
                    case(
                        (and_(within, MovementLine.quantity < 0), -MovementLine.quantity),
                        else_=0,
                    )
                ).label("outbound"),
            )
            .join(Movement, MovementLine.movement_id == Movement.id)
            .where(Movement.status != MovementStatus.CANCELLED.value)
            .group_by(MovementLine.sku)
            .subquery()
        )

        query = (
            select(
                Product,
                func.coalesce(totals.c.beginning, 0),
                func.coalesce(totals.c.inbound, 0),
                func.coalesce(totals.c.outbound, 0),
            )
            .outerjoin(totals, totals.c.sku == Product.sku)
            .order_by(Product.name, Product.sku)
        )

        return [
            PeriodSummaryRow(
                sku=product.sku,
                name=product.name,
                volume_ml=product.volume_ml,
                price=product.price,
                beginning_inventory=int(beginning),
                total_inbound=int(inbound),
                total_outbound=int(outbound),
            )
            for product, beginning, inbound, outbound in self.session.execute(query).all()
        ]

    @staticmethod
    def _to_row(product: Product, on_hand: int) -> StockRow:
        return StockRow(
            sku=product.sku,
            name=product.name,
            volume_ml=product.volume_ml,
            price=product.price,
            min_stock_threshold=product.min_stock_threshold,
            on_hand=on_hand,
            total_value=Decimal(on_hand) * product.price,
            description=product.description,
            barcode_type=product.barcode_type,
        )
