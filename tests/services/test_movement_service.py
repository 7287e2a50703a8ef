"""Tests for movement cancellation."""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_kernel.db.engine import session_scope
from stock_kernel.domain.movement_types import MovementStatus, MovementType
from stock_kernel.exceptions import (
    MovementNotCancellableError,
    MovementNotFoundError,
    MovementStateError,
)
from stock_kernel.models.movement import Movement
from stock_kernel.selectors.stock_selector import StockSelector
from stock_kernel.services.movement_service import MovementService


@pytest.fixture
def product(create_product):
    return create_product("ABC", price=Decimal("100"))


def _cancel(session_factory, movement_id, actor_id="manager-1"):
    with session_scope(session_factory) as s:
        return MovementService(s).cancel_movement(movement_id, actor_id)


class TestCancelMovement:

    def test_cancel_removes_lines_from_on_hand(self, product, record, session_factory):
        record(MovementType.INBOUND, ("ABC", 10))
        sale = record(MovementType.SALE, ("ABC", 4))

        header = _cancel(session_factory, sale.id)

        assert header.status == MovementStatus.CANCELLED
        with session_factory() as s:
            assert StockSelector(s).on_hand("ABC") == 10

    def test_cancelled_movement_keeps_its_lines(self, product, record, session_factory):
        sale = record(MovementType.SALE, ("ABC", 4))
        _cancel(session_factory, sale.id)

        with session_factory() as s:
            movement = s.get(Movement, sale.id)
            assert movement.is_cancelled
            assert [line.quantity for line in movement.lines] == [-4]

    def test_cancel_twice_rejected(self, product, record, session_factory):
        sale = record(MovementType.SALE, ("ABC", 1))
        _cancel(session_factory, sale.id)

        with pytest.raises(MovementNotCancellableError) as exc_info:
            _cancel(session_factory, sale.id)

        assert isinstance(exc_info.value, MovementStateError)
        assert exc_info.value.status == "cancelled"

    def test_pending_movement_not_cancellable(self, product, store, metadata, session_factory):
        header = store.insert_movement_header(MovementType.INBOUND, metadata)

        with pytest.raises(MovementNotCancellableError) as exc_info:
            _cancel(session_factory, header.id)
        assert exc_info.value.status == "pending"

    def test_unknown_movement(self, engine, session_factory):
        with pytest.raises(MovementNotFoundError):
            _cancel(session_factory, uuid4())

    def test_cancel_logged(self, product, record, session_factory, captured_logs):
        sale = record(MovementType.SALE, ("ABC", 2))
        _cancel(session_factory, sale.id, actor_id="manager-7")

        records = [r for r in captured_logs() if r["message"] == "movement_cancelled"]
        assert len(records) == 1
        assert records[0]["movement_id"] == str(sale.id)
        assert records[0]["actor_id"] == "manager-7"
        assert records[0]["line_count"] == 1
