"""Trading session: one user's ledger wired to persistence and the advisory gateway.

Lifecycle:
    1. ``login()`` (stub identity) or ``resume()`` restores the saved user.
    2. The user's portfolio and transaction log are loaded from the store,
       or a fresh ledger is created with the configured starting cash.
    3. Every committed ledger mutation is written back in full.
    4. Advisory calls apply a per-operation fallback policy:

       ==================  ==========================================
       operation           on gateway failure
       ==================  ==========================================
       discover            empty candidate list
       market_overview     empty index list
       refresh_predictions empty forecast, prediction suffix cleared
       chat                apology message
       search              raises ``LookupFailed``
       analyze             re-raises
       ==================  ==========================================
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime

from advisory.base import AdvisoryGateway
from advisory.errors import AdvisoryError, LookupFailed
from ledger.ledger import Ledger
from ledger.valuation import profit_and_loss, total_value
from models.advisory import (
    AnalysisResponse,
    ChatMessage,
    ChatReply,
    DiscoveryResponse,
    MarketOverviewResponse,
    PredictionResponse,
    Stock,
    StockLookupResponse,
    User,
)
from models.config import SessionConfig
from models.events import LedgerEvent
from models.portfolio import Portfolio
from models.trade import TradeError, TradeResult, TradeType
from session.store import SessionStore

logger = logging.getLogger(__name__)

STUB_USER = User(
    id="google_user_123",
    name="Experimental Trader",
    email="trader@example.com",
    avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=Trader",
)

FORECAST_UNAVAILABLE = "Unable to generate forecast at this time."
CHAT_UNAVAILABLE = "Error communicating with AI."


class NotLoggedIn(RuntimeError):
    """A ledger operation was attempted before ``login()``/``resume()``."""


class TradingSession:
    """Orchestrates the ledger, the session store and the advisory gateway.

    One session drives at most one user's ledger at a time. The ledger stays
    usable while advisory requests are in flight; forecast results are
    applied in arrival order.

    A failed store write does not undo a committed trade; the error is kept
    in ``persist_error`` until the next successful save.
    """

    def __init__(
        self,
        config: SessionConfig,
        gateway: AdvisoryGateway,
        store: SessionStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._store = store
        self._clock = clock
        self._user: User | None = None
        self._ledger: Ledger | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self.chat_history: list[ChatMessage] = []
        self.last_prediction: PredictionResponse | None = None
        self.persist_error: OSError | None = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def initial_balance(self) -> float:
        return self._config.ledger.initial_cash

    def login(self, user: User = STUB_USER) -> User:
        """Sign in *user* (no verification) and load or create their portfolio."""
        self._store.save_user(user)
        self._attach(user)
        logger.info("Logged in as %s (%s).", user.name, user.id)
        return user

    def resume(self) -> User | None:
        """Restore the previously logged-in user, if any."""
        user = self._store.load_user()
        if user is not None:
            self._attach(user)
            logger.info("Resumed session for %s.", user.id)
        return user

    def logout(self) -> None:
        """Forget the current user; their portfolio stays persisted."""
        self._detach()
        self._store.clear_user()
        self.chat_history = []
        self.last_prediction = None

    # ------------------------------------------------------------------
    # Ledger access
    # ------------------------------------------------------------------

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise NotLoggedIn("No user is logged in.")
        return self._ledger

    def portfolio(self) -> Portfolio:
        return self.ledger.portfolio()

    @property
    def total_value(self) -> float:
        return total_value(self.portfolio())

    @property
    def pnl(self) -> float:
        return profit_and_loss(self.portfolio(), self.initial_balance)

    def execute_trade(
        self, trade_type: TradeType | str, ticker: str, price: float, shares: float
    ) -> TradeResult:
        return self.ledger.execute_trade(trade_type, ticker, price, shares)

    def buy_amount(self, stock: Stock, amount: float) -> TradeResult:
        """Spend up to *amount* dollars on whole shares of *stock*."""
        if amount <= 0:
            return TradeResult.reject(TradeError.INVALID_ORDER, "Enter a positive dollar amount.")
        if amount > self.ledger.cash:
            return TradeResult.reject(
                TradeError.INSUFFICIENT_FUNDS,
                f"Cannot spend ${amount:.2f}; only ${self.ledger.cash:.2f} available.",
            )
        shares = _whole_shares(amount, stock.price)
        if shares <= 0:
            return TradeResult.reject(
                TradeError.INSUFFICIENT_FUNDS,
                f"${amount:.2f} does not buy one share of {stock.ticker} at ${stock.price:.2f}.",
            )
        return self.ledger.execute_trade(TradeType.BUY, stock.ticker, stock.price, shares)

    def buy_max(self, analysis: AnalysisResponse) -> TradeResult:
        """Buy as many whole shares as cash allows at the analysed price."""
        shares = _whole_shares(self.ledger.cash, analysis.current_price)
        if shares <= 0:
            return TradeResult.reject(
                TradeError.INSUFFICIENT_FUNDS,
                f"Cash ${self.ledger.cash:.2f} does not cover one share of "
                f"{analysis.ticker} at ${analysis.current_price:.2f}.",
            )
        return self.ledger.execute_trade(
            TradeType.BUY, analysis.ticker, analysis.current_price, shares
        )

    def exit_all(self, analysis: AnalysisResponse) -> TradeResult:
        """Sell the whole position in the analysed ticker at the analysed price."""
        held = self.ledger.get_holding(analysis.ticker)
        if held is None:
            return TradeResult.reject(
                TradeError.NO_POSITION, f"Cannot sell {analysis.ticker}: no position held."
            )
        return self.ledger.execute_trade(
            TradeType.SELL, held.ticker, analysis.current_price, held.shares
        )

    # ------------------------------------------------------------------
    # Advisory
    # ------------------------------------------------------------------

    async def refresh_predictions(self) -> PredictionResponse:
        """Ask for a 7-day forecast and fold it into the valuation history.

        On failure the prediction suffix is cleared and an empty response
        carrying an explanatory rationale is returned.
        """
        ledger = self.ledger
        try:
            response = await self._gateway.predict(ledger.holdings(), ledger.cash)
        except AdvisoryError as exc:
            logger.warning("Forecast failed, clearing predictions: %s", exc)
            response = PredictionResponse(predictions=[], rationale=FORECAST_UNAVAILABLE)
        if ledger is not self._ledger:
            logger.info("Discarding forecast for a session that is no longer active.")
            return response
        ledger.apply_predictions(response)
        self.last_prediction = response
        return response

    async def discover(self) -> DiscoveryResponse:
        try:
            return await self._gateway.discover()
        except AdvisoryError as exc:
            logger.warning("Discovery failed, showing no candidates: %s", exc)
            return DiscoveryResponse()

    async def market_overview(self) -> MarketOverviewResponse:
        try:
            return await self._gateway.market_overview()
        except AdvisoryError as exc:
            logger.warning("Market overview failed, showing no indices: %s", exc)
            return MarketOverviewResponse()

    async def analyze(self, ticker: str) -> AnalysisResponse:
        """Deep analysis; failures propagate to the caller."""
        return await self._gateway.analyze(ticker)

    async def search(self, ticker: str) -> StockLookupResponse:
        """Ticker lookup; any failure surfaces as ``LookupFailed``."""
        if not ticker.strip():
            raise LookupFailed("Enter a ticker to search for.")
        try:
            return await self._gateway.search(ticker.strip())
        except LookupFailed:
            raise
        except AdvisoryError as exc:
            raise LookupFailed(f"Ticker not found or search failed: {ticker}") from exc

    async def chat(self, message: str) -> ChatReply:
        history = list(self.chat_history)
        self.chat_history.append(ChatMessage(role="user", content=message))
        try:
            reply = await self._gateway.chat(message, history)
        except AdvisoryError as exc:
            logger.warning("Chat failed: %s", exc)
            reply = ChatReply(text=CHAT_UNAVAILABLE)
        self.chat_history.append(
            ChatMessage(role="model", content=reply.text, sources=reply.sources)
        )
        return reply

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _attach(self, user: User) -> None:
        self._detach()
        portfolio = self._store.load_portfolio(user.id)
        if portfolio is None:
            ledger = Ledger.new(self.initial_balance, clock=self._clock)
            stale = self._store.load_transactions(user.id)
            if stale:
                logger.warning(
                    "Discarding %d stored transaction(s) for %s: no usable portfolio record.",
                    len(stale),
                    user.id,
                )
            self._store.save_portfolio(user.id, ledger.portfolio())
            self._store.save_transactions(user.id, [])
            logger.info("Created portfolio for %s with $%.2f.", user.id, self.initial_balance)
        else:
            transactions = self._store.load_transactions(user.id)
            ledger = Ledger.from_state(portfolio, transactions, clock=self._clock)
        self._user = user
        self._ledger = ledger
        self._unsubscribe = ledger.subscribe(self._persist)

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._ledger = None
        self._user = None
        self.persist_error = None

    def _persist(self, event: LedgerEvent) -> None:
        if self._user is None or self._ledger is None:
            return
        try:
            self._store.save_portfolio(self._user.id, event.portfolio)
            if event.kind == "trade":
                self._store.save_transactions(self._user.id, self._ledger.transactions())
        except OSError as exc:
            # The ledger keeps the committed state; callers check persist_error.
            self.persist_error = exc
            logger.error("Could not save %s update for %s: %s", event.kind, self._user.id, exc)
        else:
            self.persist_error = None


def _whole_shares(amount: float, price: float) -> int:
    if price <= 0:
        return 0
    return math.floor(amount / price)
