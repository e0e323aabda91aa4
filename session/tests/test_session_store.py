from __future__ import annotations

import json

import pytest

from models.advisory import User
from models.config import StoreConfig
from models.portfolio import Holding, Portfolio, Snapshot
from models.trade import Transaction, TradeType
from session.store import (
    USER_KEY,
    InMemoryStore,
    JsonFileStore,
    SessionStore,
    create_store,
)

USER = User(id="u1", name="Tester", email="t@example.com")


def _portfolio() -> Portfolio:
    return Portfolio(
        cash=50.0,
        holdings=[Holding(ticker="ABCD", shares=20, avg_cost=2.5, current_price=2.5)],
        history=[
            Snapshot(timestamp="2026-01-05T14:30:00.000+00:00", total_value=100.0),
            Snapshot(timestamp="2026-01-06", total_value=101.0, is_prediction=True),
        ],
    )


def _transaction() -> Transaction:
    return Transaction(
        id="abc123def456",
        type=TradeType.BUY,
        ticker="ABCD",
        shares=20,
        price=2.5,
        timestamp="2026-01-05T14:31:00.000+00:00",
    )


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path) -> SessionStore:
    backend = InMemoryStore() if request.param == "memory" else JsonFileStore(tmp_path / "state")
    return SessionStore(backend)


class TestSessionStore:
    def test_empty_store(self, store: SessionStore):
        assert store.load_user() is None
        assert store.load_portfolio("u1") is None
        assert store.load_transactions("u1") == []

    def test_user_round_trip_and_clear(self, store: SessionStore):
        store.save_user(USER)
        assert store.load_user() == USER
        store.clear_user()
        assert store.load_user() is None

    def test_portfolio_round_trip(self, store: SessionStore):
        store.save_portfolio("u1", _portfolio())
        assert store.load_portfolio("u1") == _portfolio()
        assert store.load_portfolio("someone-else") is None

    def test_transactions_round_trip(self, store: SessionStore):
        store.save_transactions("u1", [_transaction()])
        assert store.load_transactions("u1") == [_transaction()]

    def test_save_overwrites(self, store: SessionStore):
        store.save_portfolio("u1", _portfolio())
        store.save_portfolio("u1", Portfolio(cash=100.0))
        assert store.load_portfolio("u1") == Portfolio(cash=100.0)


def test_portfolio_is_stored_with_wire_field_names():
    backend = InMemoryStore()
    SessionStore(backend).save_portfolio("u1", _portfolio())

    raw = backend.load("portfolio_u1")

    assert raw["holdings"][0] == {"ticker": "ABCD", "shares": 20.0, "avgCost": 2.5, "currentPrice": 2.5}
    assert raw["history"][1]["isPrediction"] is True
    assert "totalValue" in raw["history"][0]


def test_keys_follow_user_id():
    backend = InMemoryStore()
    store = SessionStore(backend)
    store.save_user(USER)
    store.save_portfolio("u1", Portfolio(cash=1.0))
    store.save_transactions("u1", [])
    assert backend.keys() == ["portfolio_u1", "trader_user", "transactions_u1"]


def test_invalid_entry_is_treated_as_absent(caplog):
    backend = InMemoryStore()
    backend.save("portfolio_u1", {"cash": -5})
    with caplog.at_level("WARNING"):
        assert SessionStore(backend).load_portfolio("u1") is None
    assert "portfolio_u1" in caplog.text


class TestJsonFileStore:
    def test_one_file_per_key(self, tmp_path):
        backend = JsonFileStore(tmp_path)
        backend.save(USER_KEY, {"id": "u1"})
        assert json.loads((tmp_path / "trader_user.json").read_text()) == {"id": "u1"}
        assert not list(tmp_path.glob("*.tmp"))

    def test_unsafe_key_characters_are_replaced(self, tmp_path):
        backend = JsonFileStore(tmp_path)
        backend.save("portfolio_a/b", {"cash": 1})
        assert (tmp_path / "portfolio_a_b.json").exists()
        assert backend.load("portfolio_a/b") == {"cash": 1}

    def test_delete_missing_key_is_noop(self, tmp_path):
        JsonFileStore(tmp_path).delete("nothing")

    def test_corrupt_file_is_treated_as_absent(self, tmp_path):
        (tmp_path / "trader_user.json").write_text("{not json", encoding="utf-8")
        assert SessionStore(JsonFileStore(tmp_path)).load_user() is None


def test_create_store():
    assert isinstance(create_store(StoreConfig(backend="memory")), InMemoryStore)
    json_store = create_store(StoreConfig(backend="json", path="some/dir"))
    assert isinstance(json_store, JsonFileStore)
    assert str(json_store.path) == "some/dir"
