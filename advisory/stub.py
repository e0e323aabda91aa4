"""Deterministic advisory gateway for tests and offline runs.

Responses are derived only from the inputs (ticker characters, holdings,
cash) and an injectable clock, so repeated calls return identical payloads.
Set ``fail=True`` to make every call raise ``MalformedResponse``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Callable

from advisory.base import AdvisoryGateway
from advisory.errors import LookupFailed, MalformedResponse
from advisory.registry import register
from ledger.valuation import holdings_value
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
)
from models.config import AdvisorConfig
from models.portfolio import Holding

STUB_SOURCE = Source(title="Stub market data", uri="https://example.com/stub")

_CANDIDATES: tuple[tuple[str, str, float], ...] = (
    ("ABCD", "Abcd Therapeutics", 2.50),
    ("MCRO", "Micro Robotics Corp", 4.20),
    ("NANO", "Nanogrid Energy", 1.15),
    ("PICO", "Pico Semiconductor", 7.80),
    ("TINY", "Tiny Logistics Inc", 3.05),
)


def stub_price(ticker: str) -> float:
    """Stable pseudo-price in [1.00, 20.99] derived from the ticker text."""
    seed = sum(ord(ch) * (i + 1) for i, ch in enumerate(ticker.upper()))
    return round(1 + (seed % 2000) / 100, 2)


@register("stub")
class StubAdvisoryGateway(AdvisoryGateway):
    """Canned, input-deterministic responses; no network access."""

    def __init__(
        self,
        config: AdvisorConfig | None = None,
        *,
        fail: bool = False,
        clock: Callable[[], datetime] | None = None,
        daily_growth: float = 0.01,
    ) -> None:
        super().__init__(config or AdvisorConfig(gateway="stub"))
        self.fail = fail
        self.daily_growth = daily_growth
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.calls: list[str] = []

    async def discover(self) -> DiscoveryResponse:
        self._record("discover")
        stamp = self._clock().isoformat(timespec="seconds")
        stocks = [
            Stock(
                ticker=ticker,
                name=name,
                price=price,
                change_percent=round(price % 3 - 1, 2),
                market_cap=f"${int(price * 40)}M",
                reasoning=f"{name} shows steady volume growth.",
                sentiment="Bullish",
                last_updated=stamp,
            )
            for ticker, name, price in _CANDIDATES
        ]
        return DiscoveryResponse(stocks=stocks, sources=[STUB_SOURCE])

    async def analyze(self, ticker: str) -> AnalysisResponse:
        self._record("analyze")
        ticker = ticker.strip().upper()
        price = stub_price(ticker)
        recommendation = ("BUY", "HOLD", "SELL")[int(price * 100) % 3]
        return AnalysisResponse(
            recommendation=recommendation,
            ticker=ticker,
            current_price=price,
            confidence=60 + int(price) % 30,
            analysis=f"Stub analysis for {ticker} at ${price:.2f}.",
            sources=[STUB_SOURCE],
        )

    async def predict(self, holdings: Sequence[Holding], cash: float) -> PredictionResponse:
        self._record("predict")
        base = cash + holdings_value(holdings)
        today = self._clock().date()
        predictions = [
            PredictionPoint(
                timestamp=(today + timedelta(days=day)).isoformat(),
                total_value=round(base * (1 + self.daily_growth) ** day, 2),
            )
            for day in range(1, 8)
        ]
        return PredictionResponse(
            predictions=predictions,
            rationale=f"Stub forecast compounding {self.daily_growth:.1%} per day.",
            sources=[STUB_SOURCE],
        )

    async def market_overview(self) -> MarketOverviewResponse:
        self._record("market_overview")
        indices = [
            MarketIndex(name="S&P 500", value="5,000.00", change="+10.00", change_percent="+0.20%", is_positive=True),
            MarketIndex(name="NASDAQ", value="16,000.00", change="-8.00", change_percent="-0.05%", is_positive=False),
            MarketIndex(name="Bitcoin", value="60,000.00", change="+600.00", change_percent="+1.00%", is_positive=True),
        ]
        return MarketOverviewResponse(indices=indices, sources=[STUB_SOURCE])

    async def search(self, ticker: str) -> StockLookupResponse:
        try:
            self._record("search")
        except MalformedResponse as exc:
            raise LookupFailed(f"Failed to find data for ticker: {ticker}") from exc
        ticker = ticker.strip().upper()
        if not ticker.isalpha():
            raise LookupFailed(f"Failed to find data for ticker: {ticker}")
        price = stub_price(ticker)
        stock = Stock(
            ticker=ticker,
            name=f"{ticker} Holdings",
            price=price,
            change_percent=0.0,
            market_cap=f"${int(price * 25)}M",
            reasoning=f"Stub outlook for {ticker}.",
            sentiment="Neutral",
            last_updated=self._clock().isoformat(timespec="seconds"),
        )
        return StockLookupResponse(stock=stock, sources=[STUB_SOURCE])

    async def chat(self, message: str, history: Sequence[ChatMessage] = ()) -> ChatReply:
        self._record("chat")
        return ChatReply(text=f"Stub reply to: {message}", sources=[STUB_SOURCE])

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise MalformedResponse(f"Stub gateway configured to fail ({operation}).")
