"""Portfolio ledger: cash, holdings, transaction log and valuation history.

The ledger validates and executes single BUY/SELL trades with all-or-nothing
semantics. It owns the canonical portfolio state for one user session and
notifies subscribed listeners after every committed mutation.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from ledger.history import HistoryTrack
from ledger.valuation import holdings_value
from models.advisory import PredictionResponse
from models.events import LedgerEvent
from models.portfolio import Holding, Portfolio, Snapshot
from models.trade import TradeError, TradeResult, TradeType, Transaction

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[LedgerEvent], None]

# Remainders below this after a SELL count as a fully closed position.
_SHARE_EPSILON = 1e-9


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 with fixed millisecond precision, so string order is time order."""
    return moment.isoformat(timespec="milliseconds")


class Ledger:
    """Stateful ledger that validates, executes, and records trades.

    Instantiate one ``Ledger`` per user session, either fresh with
    ``Ledger.new`` or restored with ``Ledger.from_state``. Trades return a
    ``TradeResult``; rejected trades never change state.
    """

    def __init__(
        self,
        cash: float,
        holdings: Iterable[Holding] = (),
        history: Iterable[Snapshot] = (),
        transactions: Iterable[Transaction] = (),
        *,
        clock: Clock | None = None,
    ) -> None:
        if cash < 0:
            raise ValueError(f"Cash balance cannot be negative, got {cash}.")
        self._clock: Clock = clock or utc_now
        self._cash: float = cash
        self._holdings: dict[str, Holding] = {}
        for holding in holdings:
            if holding.ticker in self._holdings:
                raise ValueError(f"Duplicate holding for ticker {holding.ticker}.")
            self._holdings[holding.ticker] = holding
        self._history = HistoryTrack(history)
        self._transactions: list[Transaction] = list(transactions)
        self._listeners: list[Listener] = []

    @classmethod
    def new(cls, initial_cash: float, *, clock: Clock | None = None) -> Ledger:
        """Create a brand-new ledger with one actual snapshot at creation."""
        ledger = cls(initial_cash, clock=clock)
        ledger._history.append_actual(
            Snapshot(timestamp=format_timestamp(ledger._clock()), total_value=initial_cash)
        )
        return ledger

    @classmethod
    def from_state(
        cls,
        portfolio: Portfolio,
        transactions: Iterable[Transaction] = (),
        *,
        clock: Clock | None = None,
    ) -> Ledger:
        """Restore a ledger from a persisted portfolio and transaction log."""
        return cls(
            portfolio.cash,
            holdings=portfolio.holdings,
            history=portfolio.history,
            transactions=transactions,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def history(self) -> HistoryTrack:
        return self._history

    def holdings(self) -> list[Holding]:
        return list(self._holdings.values())

    def get_holding(self, ticker: str) -> Holding | None:
        return self._holdings.get(_normalize_ticker(ticker))

    def portfolio(self) -> Portfolio:
        """Return a snapshot of the current portfolio state."""
        return Portfolio(
            cash=self._cash,
            holdings=self.holdings(),
            history=self._history.current_series(),
        )

    def transactions(self) -> list[Transaction]:
        """Return the transaction log, most recent first."""
        return list(self._transactions)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for committed mutations; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def execute_trade(
        self,
        trade_type: TradeType | str,
        ticker: str,
        price: float,
        shares: float,
    ) -> TradeResult:
        """Validate and execute one trade against the current portfolio.

        Execution is **all-or-nothing**: the post-trade cash and holdings are
        computed on copies and only committed, together with the new actual
        snapshot and the transaction record, once every check has passed.
        """
        rejection = _validate_order(trade_type, ticker, price, shares)
        if rejection is not None:
            logger.info("Rejected trade: %s", rejection.message)
            return rejection

        side = _coerce_trade_type(trade_type)
        ticker = _normalize_ticker(ticker)

        # ---- Phase 1: Simulate on copies ----------------------------------
        sim_holdings = dict(self._holdings)
        trade_value = price * shares

        if side is TradeType.BUY:
            if self._cash < trade_value:
                return self._reject(
                    TradeError.INSUFFICIENT_FUNDS,
                    f"Insufficient cash to buy {shares:g} shares of {ticker} at "
                    f"${price:.2f} (cost ${trade_value:.2f}, available ${self._cash:.2f}).",
                )
            sim_cash = self._cash - trade_value
            held = sim_holdings.get(ticker)
            if held is None:
                sim_holdings[ticker] = Holding(
                    ticker=ticker, shares=shares, avg_cost=price, current_price=price
                )
            else:
                total_shares = held.shares + shares
                total_cost = held.shares * held.avg_cost + shares * price
                sim_holdings[ticker] = held.model_copy(
                    update={
                        "shares": total_shares,
                        "avg_cost": total_cost / total_shares,
                        "current_price": price,
                    }
                )
        else:
            held = sim_holdings.get(ticker)
            if held is None:
                return self._reject(
                    TradeError.NO_POSITION,
                    f"Cannot sell {ticker}: no position held.",
                )
            if shares > held.shares:
                return self._reject(
                    TradeError.INSUFFICIENT_SHARES,
                    f"Cannot sell {shares:g} shares of {ticker}: only {held.shares:g} held.",
                )
            remaining = held.shares - shares
            if remaining <= _SHARE_EPSILON:
                # Cost basis of a fully closed position is not retained.
                del sim_holdings[ticker]
            else:
                # The mark only moves on BUY.
                sim_holdings[ticker] = held.model_copy(update={"shares": remaining})
            sim_cash = self._cash + trade_value

        timestamp = self._next_timestamp()
        snapshot = Snapshot(
            timestamp=timestamp,
            total_value=sim_cash + holdings_value(sim_holdings.values()),
        )
        transaction = Transaction(
            id=uuid.uuid4().hex[:12],
            type=side,
            ticker=ticker,
            shares=shares,
            price=price,
            timestamp=timestamp,
        )

        # ---- Phase 2: Commit ------------------------------------------------
        self._history.append_actual(snapshot)
        self._cash = sim_cash
        self._holdings = sim_holdings
        self._transactions.insert(0, transaction)

        logger.info(
            "Executed %s %g %s @ $%.2f; cash $%.2f, total value $%.2f",
            side.value,
            shares,
            ticker,
            price,
            self._cash,
            snapshot.total_value,
        )
        self._notify(LedgerEvent(kind="trade", portfolio=self.portfolio(), transaction=transaction))
        return TradeResult(
            status="accepted",
            transaction=transaction,
            message=f"{side.value} {shares:g} {ticker} @ ${price:.2f}",
        )

    def apply_predictions(self, response: PredictionResponse) -> None:
        """Replace the forecast suffix with the points in *response*.

        An empty ``predictions`` list clears the suffix.
        """
        if not response.predictions:
            self._history.clear_predictions()
            logger.info("Cleared prediction suffix.")
        else:
            self._history.replace_predictions(
                Snapshot(timestamp=p.timestamp, total_value=p.total_value, is_prediction=True)
                for p in response.predictions
            )
            logger.info("Applied %d prediction point(s).", len(response.predictions))
        self._notify(LedgerEvent(kind="predictions", portfolio=self.portfolio()))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _next_timestamp(self) -> str:
        """Clock time, held at the last actual timestamp if the clock went backwards."""
        timestamp = format_timestamp(self._clock())
        last = self._history.last_actual()
        if last is not None and timestamp < last.timestamp:
            logger.warning(
                "Clock reads %s, earlier than last valuation at %s; reusing the latter.",
                timestamp,
                last.timestamp,
            )
            return last.timestamp
        return timestamp

    def _notify(self, event: LedgerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Ledger listener %r failed on %s event.", listener, event.kind)

    @staticmethod
    def _reject(error: TradeError, message: str) -> TradeResult:
        logger.info("Rejected trade (%s): %s", error.value, message)
        return TradeResult.reject(error, message)


def _normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def _coerce_trade_type(trade_type: TradeType | str) -> TradeType:
    if isinstance(trade_type, TradeType):
        return trade_type
    return TradeType(str(trade_type).strip().upper())


def _validate_order(
    trade_type: TradeType | str,
    ticker: str,
    price: float,
    shares: float,
) -> TradeResult | None:
    """Return a rejection if the order violates a precondition, else ``None``."""
    try:
        _coerce_trade_type(trade_type)
    except ValueError:
        return TradeResult.reject(
            TradeError.INVALID_ORDER, f"Unknown trade type {trade_type!r}; expected BUY or SELL."
        )
    if not ticker or not ticker.strip():
        return TradeResult.reject(TradeError.INVALID_ORDER, "Ticker must not be empty.")
    if not math.isfinite(shares) or shares <= 0:
        return TradeResult.reject(
            TradeError.INVALID_ORDER, f"Share count must be positive, got {shares} for {ticker}."
        )
    if not math.isfinite(price) or price < 0:
        return TradeResult.reject(
            TradeError.INVALID_ORDER, f"Price must be non-negative, got {price} for {ticker}."
        )
    return None
