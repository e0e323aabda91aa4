"""Pure valuation helpers shared by the ledger and any display layer."""

from __future__ import annotations

from collections.abc import Iterable

from models.portfolio import Holding, Portfolio


def market_value(holding: Holding) -> float:
    """Shares times the last marked price."""
    return holding.shares * holding.current_price


def holdings_value(holdings: Iterable[Holding]) -> float:
    return sum((market_value(h) for h in holdings), 0.0)


def total_value(portfolio: Portfolio) -> float:
    """Cash plus every holding at its current marked price."""
    return portfolio.cash + holdings_value(portfolio.holdings)


def profit_and_loss(portfolio: Portfolio, initial_balance: float) -> float:
    return total_value(portfolio) - initial_balance


def return_pct(portfolio: Portfolio, initial_balance: float) -> float:
    """Profit/loss as a percentage of *initial_balance*."""
    if initial_balance == 0:
        return 0.0
    return profit_and_loss(portfolio, initial_balance) / initial_balance * 100


def unrealized_pnl(holding: Holding) -> float:
    """Mark-to-market gain of an open position against its average cost."""
    return (holding.current_price - holding.avg_cost) * holding.shares
