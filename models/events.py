"""Ledger change notifications.

Every ledger mutation produces one ``LedgerEvent`` carrying the post-change
portfolio, so listeners (persistence, displays) never read half-applied
state.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from models.portfolio import Portfolio
from models.trade import Transaction


class LedgerEvent(BaseModel):
    """A committed ledger mutation.

    ``kind`` is ``"trade"`` for an executed BUY/SELL (``transaction`` set)
    and ``"predictions"`` when the forecast suffix was replaced.
    """

    kind: Literal["trade", "predictions"]
    portfolio: Portfolio
    transaction: Transaction | None = None
