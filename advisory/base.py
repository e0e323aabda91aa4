"""Abstract base class for advisory gateways.

Every gateway (LLM-backed, deterministic stub, etc.) implements this
interface so the trading session can use them interchangeably. The session
depends only on the response models, never on how they are produced.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from models.advisory import (
    AnalysisResponse,
    ChatMessage,
    ChatReply,
    DiscoveryResponse,
    MarketOverviewResponse,
    PredictionResponse,
    StockLookupResponse,
)
from models.config import AdvisorConfig
from models.portfolio import Holding


class AdvisoryGateway(ABC):
    """Common interface for AI market-research services.

    All operations are coroutines so a request in flight never blocks the
    ledger. Implementations raise ``MalformedResponse`` when they cannot
    produce a well-formed payload, ``LookupFailed`` when a ticker search
    finds nothing, and ``AdvisoryError`` for other failures.
    """

    def __init__(self, config: AdvisorConfig) -> None:
        self.config = config

    @abstractmethod
    async def discover(self) -> DiscoveryResponse:
        """Return trending micro-cap candidates for the discovery feed."""

    @abstractmethod
    async def analyze(self, ticker: str) -> AnalysisResponse:
        """Return a BUY/SELL/HOLD recommendation with the current price."""

    @abstractmethod
    async def predict(self, holdings: Sequence[Holding], cash: float) -> PredictionResponse:
        """Forecast total portfolio value for the next seven days."""

    @abstractmethod
    async def market_overview(self) -> MarketOverviewResponse:
        """Return headline index quotes (informational only)."""

    @abstractmethod
    async def search(self, ticker: str) -> StockLookupResponse:
        """Look up market data for a single ticker."""

    @abstractmethod
    async def chat(self, message: str, history: Sequence[ChatMessage] = ()) -> ChatReply:
        """Free-form conversation with the trading assistant."""
