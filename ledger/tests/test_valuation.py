from __future__ import annotations

import pytest

from ledger.valuation import market_value, profit_and_loss, return_pct, total_value, unrealized_pnl
from models.portfolio import Holding, Portfolio


@pytest.fixture
def portfolio() -> Portfolio:
    return Portfolio(
        cash=25.0,
        holdings=[
            Holding(ticker="ABC", shares=5, avg_cost=10.0, current_price=12.0),
            Holding(ticker="XYZ", shares=2.5, avg_cost=4.0, current_price=2.0),
        ],
    )


def test_total_value_uses_current_price_not_cost(portfolio: Portfolio):
    assert total_value(portfolio) == 25.0 + 60.0 + 5.0


def test_total_value_of_cash_only_portfolio():
    assert total_value(Portfolio(cash=100.0)) == 100.0


def test_profit_and_loss(portfolio: Portfolio):
    assert profit_and_loss(portfolio, 100.0) == -10.0


def test_return_pct(portfolio: Portfolio):
    assert return_pct(portfolio, 100.0) == pytest.approx(-10.0)
    assert return_pct(portfolio, 0.0) == 0.0


def test_holding_helpers(portfolio: Portfolio):
    abc, xyz = portfolio.holdings
    assert market_value(abc) == 60.0
    assert unrealized_pnl(abc) == 10.0
    assert unrealized_pnl(xyz) == -5.0


def test_valuation_is_pure(portfolio: Portfolio):
    before = portfolio.model_dump()
    total_value(portfolio)
    profit_and_loss(portfolio, 100.0)
    assert portfolio.model_dump() == before
