"""
Label Batch Planner -- decides the unit range of one print run.

Responsibility:
    Given a product's current stock, how many of its units already carry
    labels, and what the operator asked for, returns the unit range to print,
    the codes for that range, and advisory warnings.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The caller reads
    current stock through the stock selector and passes the row in.

Rules:
    - start unit and quantity must be >= 1.
    - quantity may not exceed on-hand while on-hand is positive.  With no
      stock on hand the run is allowed and flagged NO_STOCK.
    - Warnings never block a run; only the checks above and the 9999
      ceiling do.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from stock_kernel.domain.label_policy import LabelPolicy
from stock_kernel.domain.unit_barcode import allocate_range, volume_attribute
from stock_kernel.exceptions import (
    InvalidLabelRequestError,
    LabelQuantityExceedsStockError,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("domain.label_planner")


class LabelWarningCode(str, Enum):
    NOTHING_AVAILABLE = "NOTHING_AVAILABLE"
    NO_STOCK = "NO_STOCK"
    STOCK_MISMATCH = "STOCK_MISMATCH"
    PADDING_FORMAT_CHANGE = "PADDING_FORMAT_CHANGE"
    APPROACHING_LIMIT = "APPROACHING_LIMIT"
    AT_LIMIT = "AT_LIMIT"


@dataclass(frozen=True)
class LabelWarning:
    code: LabelWarningCode
    message: str


@dataclass(frozen=True)
class LabelPlan:
    """Outcome of planning one print run."""

    sku: str
    start_unit: int
    end_unit: int
    codes: tuple[str, ...]
    warnings: tuple[LabelWarning, ...]
    available_for_labeling: int
    barcode_type: str = "CODE128"

    @property
    def quantity(self) -> int:
        return len(self.codes)

    @property
    def warning_codes(self) -> frozenset[LabelWarningCode]:
        return frozenset(w.code for w in self.warnings)

    def has_warning(self, code: LabelWarningCode) -> bool:
        return code in self.warning_codes


class LabelableProduct(Protocol):
    """What the planner needs to know about a product (StockRow fits)."""

    sku: str
    volume_ml: int
    on_hand: int


def plan_labels(
    product: LabelableProduct,
    requested_start_unit: int,
    requested_quantity: int,
    previously_labeled_count: int,
    policy: LabelPolicy = LabelPolicy(),
) -> LabelPlan:
    """
    Plan a print run of unit labels for one product.

    Raises:
        InvalidLabelRequestError: start unit or quantity below 1.
        LabelQuantityExceedsStockError: quantity > on-hand (on-hand > 0).
        UnitRangeExhaustedError: The range would pass unit 9999.
    """
    sku = product.sku
    on_hand = product.on_hand

    if requested_start_unit < 1:
        raise InvalidLabelRequestError(
            sku, f"start unit must be at least 1, got {requested_start_unit}"
        )
    if requested_quantity < 1:
        raise InvalidLabelRequestError(
            sku, f"quantity must be at least 1, got {requested_quantity}"
        )
    if on_hand > 0 and requested_quantity > on_hand:
        raise LabelQuantityExceedsStockError(sku, requested_quantity, on_hand)

    start_unit = requested_start_unit
    end_unit = start_unit + requested_quantity - 1
    codes = allocate_range(
        sku, volume_attribute(product.volume_ml), start_unit, requested_quantity
    )

    available = on_hand - previously_labeled_count
    warnings: list[LabelWarning] = []

    if on_hand <= 0:
        warnings.append(LabelWarning(
            LabelWarningCode.NO_STOCK,
            f"No units of {sku} are in stock",
        ))
    if available <= 0:
        warnings.append(LabelWarning(
            LabelWarningCode.NOTHING_AVAILABLE,
            "Every unit in stock already has a label",
        ))
    if previously_labeled_count > on_hand:
        warnings.append(LabelWarning(
            LabelWarningCode.STOCK_MISMATCH,
            "Stock decreased since labels were generated; "
            "some labeled units may have been sold",
        ))
    if start_unit < policy.padding_boundary <= end_unit:
        warnings.append(LabelWarning(
            LabelWarningCode.PADDING_FORMAT_CHANGE,
            f"Unit numbers switch from 3 to 4 digits at unit {policy.padding_boundary}",
        ))
    if end_unit >= policy.max_unit:
        warnings.append(LabelWarning(
            LabelWarningCode.AT_LIMIT,
            f"Maximum unit number reached ({policy.max_unit}); "
            "no more labels can be generated for this product",
        ))
    elif end_unit >= policy.approaching_limit_threshold:
        warnings.append(LabelWarning(
            LabelWarningCode.APPROACHING_LIMIT,
            f"Approaching the unit number limit of {policy.max_unit}",
        ))

    plan = LabelPlan(
        sku=sku,
        start_unit=start_unit,
        end_unit=end_unit,
        codes=tuple(codes),
        warnings=tuple(warnings),
        available_for_labeling=available,
        barcode_type=getattr(product, "barcode_type", None) or policy.default_barcode_type,
    )

    logger.info(
        "label_plan_created",
        extra={
            "sku": sku,
            "start_unit": start_unit,
            "end_unit": end_unit,
            "quantity": requested_quantity,
            "on_hand": on_hand,
            "available_for_labeling": available,
            "warnings": [w.code.value for w in warnings],
        },
    )
    return plan
