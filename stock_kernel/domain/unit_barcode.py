"""
Unit Barcode Allocator -- deterministic per-unit label codes.

Responsibility:
    Turns (SKU, secondary attribute, unit number) into the barcode string
    printed on one physical unit, and parses scanned codes back.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Format:
    "{SKU}-{secondary}-{padded unit}"  e.g.  "DIOR-SAUVAGE-100ml-007"

    The SKU is normalized (trimmed, upper-case) so codes always match the
    stored product.  Unit numbers below 1000 are padded to 3 digits,
    1000..9999 to 4.
    9999 is the hard ceiling per SKU.

Invariants enforced:
    - Same inputs always produce the same code.
    - Distinct unit numbers of one SKU/attribute never produce the same code.
    - A range that would pass the ceiling fails before any code is produced.
"""

from dataclasses import dataclass

from stock_kernel.domain.values import normalize_sku
from stock_kernel.exceptions import (
    InvalidUnitCodeError,
    InvalidUnitNumberError,
    UnitRangeExhaustedError,
)

MIN_UNIT_NUMBER = 1
MAX_UNIT_NUMBER = 9999
PADDING_BOUNDARY = 1000
SHORT_PADDING = 3
LONG_PADDING = 4


@dataclass(frozen=True)
class UnitCode:
    """A parsed unit barcode."""

    sku: str
    secondary_attribute: str
    unit_number: int

    @property
    def code(self) -> str:
        return code_for(self.sku, self.secondary_attribute, self.unit_number)


def unit_padding(unit_number: int) -> int:
    """Number of digits a unit number is padded to."""
    return LONG_PADDING if unit_number >= PADDING_BOUNDARY else SHORT_PADDING


def format_unit_number(unit_number: int) -> str:
    return str(unit_number).zfill(unit_padding(unit_number))


def volume_attribute(volume_ml: int) -> str:
    """Secondary attribute for a bottle size, e.g. 100 -> "100ml"."""
    return f"{volume_ml}ml"


def _check_unit(sku: str, unit_number: int) -> None:
    if unit_number < MIN_UNIT_NUMBER:
        raise InvalidUnitNumberError("unit_number", unit_number)
    if unit_number > MAX_UNIT_NUMBER:
        raise UnitRangeExhaustedError(sku, unit_number, 1, MAX_UNIT_NUMBER)


def code_for(sku: str, secondary_attribute: str, unit_number: int) -> str:
    """
    Barcode string of a single unit.

    Raises:
        InvalidUnitNumberError: unit_number < 1.
        UnitRangeExhaustedError: unit_number > 9999.
    """
    sku = normalize_sku(sku)
    _check_unit(sku, unit_number)
    return f"{sku}-{secondary_attribute}-{format_unit_number(unit_number)}"


def allocate_range(
    sku: str,
    secondary_attribute: str,
    start_unit: int,
    count: int,
) -> list[str]:
    """
    Codes for units start_unit .. start_unit + count - 1, in order.

    The whole range is checked against the ceiling first; either every code
    is returned or none is.

    Raises:
        InvalidUnitNumberError: start_unit < 1 or count < 1.
        UnitRangeExhaustedError: The last unit would be above 9999.
    """
    sku = normalize_sku(sku)
    if count < 1:
        raise InvalidUnitNumberError("count", count)
    if start_unit < MIN_UNIT_NUMBER:
        raise InvalidUnitNumberError("start_unit", start_unit)
    end_unit = start_unit + count - 1
    if end_unit > MAX_UNIT_NUMBER:
        raise UnitRangeExhaustedError(sku, start_unit, count, MAX_UNIT_NUMBER)

    return [
        f"{sku}-{secondary_attribute}-{format_unit_number(unit)}"
        for unit in range(start_unit, end_unit + 1)
    ]


def parse_code(code: str) -> UnitCode:
    """
    Split a scanned unit code into its parts.

    SKUs may themselves contain hyphens, so the code is split from the
    right: the last segment is the unit number and the one before it the
    secondary attribute.

    Raises:
        InvalidUnitCodeError: The code is malformed or its unit segment is
            not a correctly padded run of ASCII digits.
    """
    parts = code.strip().rsplit("-", 2)
    if len(parts) != 3 or not all(parts):
        raise InvalidUnitCodeError(code, "expected SKU-ATTRIBUTE-UNIT")

    sku, secondary, unit_text = parts
    if not (unit_text.isascii() and unit_text.isdigit()):
        raise InvalidUnitCodeError(code, f"unit segment {unit_text!r} is not numeric")

    unit_number = int(unit_text)
    if unit_number < MIN_UNIT_NUMBER or unit_number > MAX_UNIT_NUMBER:
        raise InvalidUnitCodeError(
            code, f"unit number {unit_number} outside 1..{MAX_UNIT_NUMBER}"
        )
    if len(unit_text) != unit_padding(unit_number):
        raise InvalidUnitCodeError(
            code, f"unit segment {unit_text!r} is not padded to {unit_padding(unit_number)} digits"
        )

    return UnitCode(
        sku=normalize_sku(sku), secondary_attribute=secondary, unit_number=unit_number
    )
