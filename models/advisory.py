"""Advisory payload models: what the AI research service returns.

Field names follow the wire format (camelCase aliases); every payload
carries a parallel list of ``Source`` provenance records.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Source(BaseModel):
    """Provenance record extracted from the provider's grounding metadata."""

    title: str = "Source"
    uri: str


class User(BaseModel):
    """Stub user profile; there is no real identity verification."""

    id: str
    name: str
    email: str
    avatar: str = ""


class Stock(BaseModel):
    """Candidate stock as surfaced by discovery or ticker search."""

    ticker: str
    name: str
    price: float
    change_percent: float = Field(default=0.0, alias="changePercent")
    market_cap: str = Field(alias="marketCap")
    reasoning: str
    sentiment: Literal["Bullish", "Bearish", "Neutral"]
    last_updated: str = Field(default="", alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)


class MarketIndex(BaseModel):
    """Informational index quote (values are display strings)."""

    name: str
    value: str
    change: str
    change_percent: str = Field(alias="changePercent")
    is_positive: bool = Field(alias="isPositive")

    model_config = ConfigDict(populate_by_name=True)


class PredictionPoint(BaseModel):
    """One forecast point as returned by the advisor (not yet flagged)."""

    timestamp: str
    total_value: float = Field(alias="totalValue")

    model_config = ConfigDict(populate_by_name=True)


class DiscoveryResponse(BaseModel):
    stocks: list[Stock] = []
    sources: list[Source] = []


class StockLookupResponse(BaseModel):
    stock: Stock
    sources: list[Source] = []


class AnalysisResponse(BaseModel):
    """Deep-dive recommendation for one ticker.

    ``confidence`` and ``analysis`` are display data only; callers use
    ``ticker`` and ``current_price`` as trade parameters.
    """

    recommendation: Literal["BUY", "SELL", "HOLD"]
    ticker: str
    current_price: float = Field(alias="currentPrice", ge=0)
    confidence: float
    analysis: str
    sources: list[Source] = []

    model_config = ConfigDict(populate_by_name=True)


class PredictionResponse(BaseModel):
    predictions: list[PredictionPoint] = []
    rationale: str = ""
    sources: list[Source] = []


class MarketOverviewResponse(BaseModel):
    indices: list[MarketIndex] = []
    sources: list[Source] = []


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    content: str
    sources: list[Source] = []


class ChatReply(BaseModel):
    text: str
    sources: list[Source] = []
