"""Portfolio ledger and valuation engine."""

from ledger.history import HistoryTrack
from ledger.ledger import Ledger, format_timestamp, utc_now
from ledger.valuation import market_value, profit_and_loss, return_pct, total_value, unrealized_pnl

__all__ = [
    "HistoryTrack",
    "Ledger",
    "format_timestamp",
    "market_value",
    "profit_and_loss",
    "return_pct",
    "total_value",
    "unrealized_pnl",
    "utc_now",
]
