"""Portfolio state models: holdings, valuation snapshots, portfolio."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Holding(BaseModel):
    """An open position in one ticker.

    ``avg_cost`` is the weighted-average per-share acquisition cost;
    ``current_price`` is the last price the position was marked at.
    """

    ticker: str
    shares: float = Field(gt=0)
    avg_cost: float = Field(alias="avgCost", ge=0)
    current_price: float = Field(alias="currentPrice", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class Snapshot(BaseModel):
    """A timestamped total-portfolio-value observation, actual or predicted."""

    timestamp: str
    total_value: float = Field(alias="totalValue")
    is_prediction: bool = Field(default=False, alias="isPrediction")

    model_config = ConfigDict(populate_by_name=True)


class Portfolio(BaseModel):
    """Cash, holdings (at most one per ticker) and valuation history.

    Serialized with ``by_alias=True`` this matches the persisted record
    format exactly.
    """

    cash: float = Field(ge=0)
    holdings: list[Holding] = []
    history: list[Snapshot] = []

    def holding(self, ticker: str) -> Holding | None:
        """Return the holding for *ticker*, or ``None`` when not held."""
        for item in self.holdings:
            if item.ticker == ticker:
                return item
        return None
