"""Data models for the micro-cap paper trader.

The ledger, the advisory gateways and the session layer all import from
models.
"""

from models.advisory import (
    AnalysisResponse,
    ChatMessage,
    ChatReply,
    DiscoveryResponse,
    MarketIndex,
    MarketOverviewResponse,
    PredictionPoint,
    PredictionResponse,
    Source,
    Stock,
    StockLookupResponse,
    User,
)
from models.config import AdvisorConfig, LedgerConfig, SessionConfig, StoreConfig
from models.events import LedgerEvent
from models.portfolio import Holding, Portfolio, Snapshot
from models.trade import TradeError, TradeResult, TradeType, Transaction

__all__ = [
    # advisory
    "AnalysisResponse",
    "ChatMessage",
    "ChatReply",
    "DiscoveryResponse",
    "MarketIndex",
    "MarketOverviewResponse",
    "PredictionPoint",
    "PredictionResponse",
    "Source",
    "Stock",
    "StockLookupResponse",
    "User",
    # config
    "AdvisorConfig",
    "LedgerConfig",
    "SessionConfig",
    "StoreConfig",
    # events
    "LedgerEvent",
    # portfolio
    "Holding",
    "Portfolio",
    "Snapshot",
    # trade
    "TradeError",
    "TradeResult",
    "TradeType",
    "Transaction",
]
