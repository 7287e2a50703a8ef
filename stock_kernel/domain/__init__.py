"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (other than structured logging)

All domain objects are immutable and deterministic.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.dtos import (
    LineRequest,
    MovementHeader,
    MovementLineRecord,
    MovementMetadata,
    MovementWithLines,
    PeriodSummaryRow,
    StockRow,
)
from stock_kernel.domain.label_planner import (
    LabelPlan,
    LabelWarning,
    LabelWarningCode,
    plan_labels,
)
from stock_kernel.domain.label_policy import LabelPolicy, ListingPolicy
from stock_kernel.domain.movement_types import (
    MovementStatus,
    MovementType,
    normalize_quantity,
    parse_movement_type,
)
from stock_kernel.domain.saga import CompensationStepError, Saga
from stock_kernel.domain.unit_barcode import (
    MAX_UNIT_NUMBER,
    UnitCode,
    allocate_range,
    code_for,
    format_unit_number,
    parse_code,
    unit_padding,
    volume_attribute,
)

__all__ = [
    # Time
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # DTOs
    "LineRequest",
    "MovementHeader",
    "MovementLineRecord",
    "MovementMetadata",
    "MovementWithLines",
    "PeriodSummaryRow",
    "StockRow",
    # Movement rules
    "MovementStatus",
    "MovementType",
    "normalize_quantity",
    "parse_movement_type",
    # Saga
    "CompensationStepError",
    "Saga",
    # Barcodes and labels
    "MAX_UNIT_NUMBER",
    "UnitCode",
    "allocate_range",
    "code_for",
    "format_unit_number",
    "parse_code",
    "unit_padding",
    "volume_attribute",
    "LabelPlan",
    "LabelPolicy",
    "LabelWarning",
    "LabelWarningCode",
    "ListingPolicy",
    "plan_labels",
]
