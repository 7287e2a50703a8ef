"""
Module: stock_kernel.models.product
Responsibility: ORM persistence for the product catalog.  Products are owned by
    catalog management; the ledger only reads them (price lookup, stock
    projection, label planning).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - SKU uniqueness (UNIQUE constraint).  SKUs are stored normalized
      (trimmed, upper-case) -- see domain.values.normalize_sku.
    - price >= 0 and min_stock_threshold >= 0 (CHECK constraints).
    - volume_ml > 0; it is the secondary attribute printed on unit labels.

Audit relevance:
    The live price on this table is read exactly once per movement line and
    copied onto the line.  Changing it never alters historical lines.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from stock_kernel.db.base import TrackedBase
from stock_kernel.domain.values import normalize_sku


DEFAULT_MIN_STOCK_THRESHOLD = 5


class Product(TrackedBase):
    """
    A sellable product (e.g. one perfume at one bottle size).

    Contract:
        Identified by its SKU.  The SKU setter normalizes on assignment so
        every row is stored upper-case.

    Non-goals:
        - Holds no quantity.  On-hand stock is always derived from movement
          lines by the stock selector.
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        CheckConstraint(
            "min_stock_threshold >= 0", name="ck_product_threshold_non_negative"
        ),
        CheckConstraint("volume_ml > 0", name="ck_product_volume_positive"),
        Index("idx_product_name", "name"),
    )

    sku: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Bottle size; printed on unit labels as "<n>ml"
    volume_ml: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    min_stock_threshold: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_MIN_STOCK_THRESHOLD,
    )

    description: Mapped[str | None] = mapped_column(
        String(4000),
        nullable=True,
    )

    # Symbology used when printing labels (e.g. "CODE128")
    barcode_type: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    @validates("sku")
    def _normalize_sku(self, key: str, value: str) -> str:
        return normalize_sku(value)

    def __repr__(self) -> str:
        return f"<Product {self.sku} price={self.price}>"
