"""
Pytest fixtures for the stock kernel test suite.

Provides:
- An in-memory SQLite database, fresh tables per test
- SqlMovementStore and a recording/failure-injecting store double
- Product factories
- Structured log capture

The in-memory engine uses a StaticPool, so every session opened by the
store (one per primitive) sees the same database.
"""

import json
import logging
from collections import Counter
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from stock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.domain.dtos import LineRequest, MovementMetadata
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_kernel.models.product import Product
from stock_kernel.services.ledger_writer import LedgerWriter
from stock_kernel.services.movement_store import MovementStore, SqlMovementStore


TEST_ACTOR_ID = "clerk-001"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, writer):
            writer.record_movement(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_write_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine with freshly created tables."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return get_session_factory()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """A session for arranging data and asserting on it.  Commits are real."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provides a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Store fixtures
# =============================================================================


@pytest.fixture
def store(session_factory, deterministic_clock) -> SqlMovementStore:
    return SqlMovementStore(session_factory, clock=deterministic_clock)


class RecordingStore(MovementStore):
    """
    MovementStore double that forwards to a real store, records every call
    and can be told to fail the Nth call of any primitive.
    """

    def __init__(self, inner: MovementStore):
        self.inner = inner
        self.calls: list[str] = []
        self._failures: dict[tuple[str, int], BaseException] = {}

    @property
    def call_counts(self) -> Counter:
        return Counter(self.calls)

    @property
    def total_calls(self) -> int:
        return len(self.calls)

    def fail_on(
        self,
        primitive: str,
        nth: int = 1,
        error: BaseException | None = None,
    ) -> None:
        """Make the nth (1-based) call of ``primitive`` raise ``error``."""
        self._failures[(primitive, nth)] = error or RuntimeError(
            f"injected failure: {primitive} #{nth}"
        )

    def _call(self, primitive: str, *args):
        self.calls.append(primitive)
        failure = self._failures.get((primitive, self.call_counts[primitive]))
        if failure is not None:
            raise failure
        return getattr(self.inner, primitive)(*args)

    def insert_movement_header(self, movement_type, metadata):
        return self._call("insert_movement_header", movement_type, metadata)

    def delete_movement_header(self, movement_id):
        return self._call("delete_movement_header", movement_id)

    def get_product_price(self, sku):
        return self._call("get_product_price", sku)

    def insert_movement_line(self, movement_id, sku, signed_quantity, unit_price, total, line_seq):
        return self._call(
            "insert_movement_line",
            movement_id, sku, signed_quantity, unit_price, total, line_seq,
        )

    def delete_movement_lines_for_movement(self, movement_id):
        return self._call("delete_movement_lines_for_movement", movement_id)

    def query_current_stock(self, sku=None):
        return self._call("query_current_stock", sku)

    def complete_movement_header(self, movement_id):
        return self._call("complete_movement_header", movement_id)


@pytest.fixture
def recording_store(store) -> RecordingStore:
    return RecordingStore(store)


@pytest.fixture
def writer(store) -> LedgerWriter:
    return LedgerWriter(store)


@pytest.fixture
def recording_writer(recording_store) -> LedgerWriter:
    return LedgerWriter(recording_store)


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_product(session):
    """Factory fixture to create committed products."""

    def _create(
        sku: str = "ABC",
        name: str | None = None,
        price: Decimal | str = Decimal("100"),
        volume_ml: int = 100,
        min_stock_threshold: int = 5,
        barcode_type: str | None = None,
    ) -> Product:
        product = Product(
            sku=sku,
            name=name or f"Product {sku}",
            price=Decimal(price),
            volume_ml=volume_ml,
            min_stock_threshold=min_stock_threshold,
            barcode_type=barcode_type,
        )
        session.add(product)
        session.commit()
        return product

    return _create


@pytest.fixture
def metadata() -> MovementMetadata:
    return MovementMetadata(performed_by=TEST_ACTOR_ID, reference="PO-1")


@pytest.fixture
def record(writer, metadata):
    """Shortcut: record a movement of (sku, quantity) pairs."""

    def _record(movement_type, *lines: tuple[str, int], **meta):
        md = MovementMetadata(**{"performed_by": TEST_ACTOR_ID, **meta}) if meta else metadata
        return writer.record_movement(
            movement_type,
            [LineRequest(sku=sku, quantity=qty) for sku, qty in lines],
            md,
        )

    return _record
