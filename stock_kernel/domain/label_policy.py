"""
Policies -- immutable tunables consumed by domain and selector code.

The kernel never reads configuration files; stock_config.bridges builds
these from the YAML settings and callers pass them in.
"""

from dataclasses import dataclass

from stock_kernel.domain.unit_barcode import MAX_UNIT_NUMBER, PADDING_BOUNDARY


@dataclass(frozen=True)
class LabelPolicy:
    """Thresholds the label planner warns against."""

    max_unit: int = MAX_UNIT_NUMBER
    padding_boundary: int = PADDING_BOUNDARY
    approaching_limit_threshold: int = 9900
    default_barcode_type: str = "CODE128"

    def __post_init__(self) -> None:
        if not 1 <= self.approaching_limit_threshold <= self.max_unit:
            raise ValueError(
                f"approaching_limit_threshold must be in 1..{self.max_unit}, "
                f"got {self.approaching_limit_threshold}"
            )


@dataclass(frozen=True)
class ListingPolicy:
    """Page sizes for movement history queries."""

    default_limit: int = 50
    max_limit: int = 100
    recent_limit: int = 10

    def __post_init__(self) -> None:
        if self.max_limit < 1:
            raise ValueError(f"max_limit must be at least 1, got {self.max_limit}")
        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError(
                f"default_limit must be in 1..{self.max_limit}, got {self.default_limit}"
            )
        if not 1 <= self.recent_limit <= self.max_limit:
            raise ValueError(
                f"recent_limit must be in 1..{self.max_limit}, got {self.recent_limit}"
            )

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))

    @staticmethod
    def clamp_offset(offset: int | None) -> int:
        return max(0, offset or 0)
