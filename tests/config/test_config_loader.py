"""Tests for stock_config loading, validation and bridges."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from stock_config import DATABASE_URL_ENV, get_active_config
from stock_config.bridges import (
    build_label_policy,
    build_listing_policy,
    init_engine_from_config,
)
from stock_config.loader import compute_checksum, parse_config
from stock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    reset_engine,
)
from stock_kernel.domain.dtos import LineRequest, MovementMetadata
from stock_kernel.domain.label_policy import LabelPolicy, ListingPolicy
from stock_kernel.domain.movement_types import MovementType
from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.models.movement import Movement
from stock_kernel.models.product import Product
from stock_kernel.services.ledger_writer import LedgerWriter
from stock_kernel.services.movement_store import SqlMovementStore


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "stock.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestGetActiveConfig:

    def test_packaged_defaults(self):
        config = get_active_config()

        assert config.database.url == "sqlite:///stock_ledger.db"
        assert config.database.echo is False
        assert config.label.approaching_limit_threshold == 9900
        assert config.label.default_barcode_type == "CODE128"
        assert config.listing.default_limit == 50
        assert config.listing.max_limit == 100
        assert config.listing.recent_limit == 10
        assert len(config.checksum) == 64

    def test_partial_file_falls_back_to_defaults(self, tmp_path):
        config = get_active_config(_write(tmp_path, {"label": {"approaching_limit_threshold": 9000}}))

        assert config.label.approaching_limit_threshold == 9000
        assert config.label.default_barcode_type == "CODE128"
        assert config.listing.max_limit == 100
        assert config.source.endswith("stock.yaml")

    def test_env_overrides_database_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://u:p@db/stock")
        config = get_active_config(_write(tmp_path, {"database": {"url": "sqlite://"}}))
        assert config.database.url == "postgresql://u:p@db/stock"

    def test_checksum_is_deterministic_and_content_sensitive(self, tmp_path):
        a = get_active_config(_write(tmp_path, {"listing": {"default_limit": 20}}))
        b = get_active_config(_write(tmp_path, {"listing": {"default_limit": 20}}))
        c = get_active_config(_write(tmp_path, {"listing": {"default_limit": 21}}))

        assert a.checksum == b.checksum
        assert a.checksum != c.checksum

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_load_logged(self, captured_logs):
        config = get_active_config()

        records = [r for r in captured_logs() if r["message"] == "stock_config_loaded"]
        assert len(records) == 1
        assert records[0]["checksum"] == config.checksum
        assert records[0]["logger"] == "stock_kernel.config"


class TestValidation:

    @pytest.mark.parametrize(
        "data, fragment",
        [
            ({"labels": {}}, "Unknown configuration sections"),
            ({"label": {"threshold": 1}}, "Unknown keys in section 'label'"),
            ({"label": {"approaching_limit_threshold": 0}}, "approaching_limit_threshold"),
            ({"label": {"approaching_limit_threshold": 10000}}, "approaching_limit_threshold"),
            ({"label": {"approaching_limit_threshold": "9900"}}, "must be an integer"),
            ({"label": {"default_barcode_type": ""}}, "default_barcode_type"),
            ({"listing": {"max_limit": 0}}, "max_limit"),
            ({"listing": {"default_limit": 500}}, "default_limit"),
            ({"listing": {"recent_limit": True}}, "must be an integer"),
            ({"database": {"echo": "yes"}}, "database.echo"),
            ({"database": []}, "must be a mapping"),
        ],
    )
    def test_invalid_values(self, data, fragment):
        with pytest.raises(ValueError, match=fragment):
            parse_config(data)

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            get_active_config(path)

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestBridges:

    def test_label_policy(self, tmp_path):
        config = get_active_config(_write(tmp_path, {
            "label": {"approaching_limit_threshold": 9500, "default_barcode_type": "EAN13"},
        }))

        policy = build_label_policy(config)

        assert policy == LabelPolicy(approaching_limit_threshold=9500, default_barcode_type="EAN13")

    def test_listing_policy(self, tmp_path):
        config = get_active_config(_write(tmp_path, {
            "listing": {"default_limit": 25, "max_limit": 40, "recent_limit": 5},
        }))

        assert build_listing_policy(config) == ListingPolicy(
            default_limit=25, max_limit=40, recent_limit=5
        )

    def test_init_engine(self, tmp_path):
        config = get_active_config(_write(tmp_path, {"database": {"url": "sqlite:///:memory:"}}))
        try:
            engine = init_engine_from_config(config)
            assert engine is get_engine()
            assert engine.dialect.name == "sqlite"
        finally:
            reset_engine()

    def test_configured_engine_guards_completed_movements(self, tmp_path):
        config = get_active_config(_write(tmp_path, {"database": {"url": "sqlite:///:memory:"}}))
        init_engine_from_config(config)
        try:
            create_tables()
            session_factory = get_session_factory()
            with session_factory() as s:
                s.add(Product(sku="ABC", name="Aventus", price=Decimal("10"), volume_ml=100))
                s.commit()

            store = SqlMovementStore(session_factory)
            movement = LedgerWriter(store).record_movement(
                MovementType.INBOUND,
                [LineRequest(sku="ABC", quantity=3)],
                MovementMetadata(performed_by="clerk-001"),
            )

            with pytest.raises(ImmutabilityViolationError):
                store.delete_movement_header(movement.id)

            with session_factory() as s:
                assert s.get(Movement, movement.id) is not None
        finally:
            drop_tables()
            reset_engine()
