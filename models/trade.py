"""Trade execution models: TradeType, Transaction, TradeError, TradeResult."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeError(str, Enum):
    """Why a trade was rejected. Rejections never change ledger state."""

    INSUFFICIENT_FUNDS = "InsufficientFunds"
    NO_POSITION = "NoPosition"
    INSUFFICIENT_SHARES = "InsufficientShares"
    INVALID_ORDER = "InvalidOrder"


class Transaction(BaseModel):
    """Single executed trade. Immutable once created."""

    id: str
    type: TradeType
    ticker: str
    shares: float = Field(gt=0)
    price: float = Field(ge=0)
    timestamp: str

    model_config = ConfigDict(frozen=True)


class TradeResult(BaseModel):
    """Ledger response to ``execute_trade``.

    Execution is all-or-nothing: ``accepted`` carries the recorded
    transaction, ``rejected`` carries the error and a human-readable
    message, and the ledger is untouched.
    """

    status: Literal["accepted", "rejected"]
    transaction: Transaction | None = None
    error: TradeError | None = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"

    @classmethod
    def reject(cls, error: TradeError, message: str) -> TradeResult:
        return cls(status="rejected", error=error, message=message)
