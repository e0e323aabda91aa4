#!/usr/bin/env python3
"""CLI entrypoint for the micro-cap paper trader.

Usage::

    python run_session.py --config config/offline.yaml status
    python run_session.py --config config/example.yaml buy ABCD 5 2.50
    python run_session.py --config config/example.yaml analyze ABCD
    python run_session.py --config config/example.yaml predict

Each invocation resumes the saved user (logging in the stub user on first
use), runs one command against the persisted portfolio, and exits.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from advisory.errors import AdvisoryError
from advisory.registry import create_gateway
from ledger.valuation import market_value, unrealized_pnl
from models.config import SessionConfig
from models.trade import TradeResult, TradeType
from session.store import SessionStore, create_store
from session.trading_session import TradingSession

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulated $100 micro-cap trading with AI research.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to the YAML configuration file (default: built-in defaults).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show cash, holdings, total value and P&L.")
    for side in ("buy", "sell"):
        trade = commands.add_parser(side, help=f"{side.upper()} shares at a given price.")
        trade.add_argument("ticker")
        trade.add_argument("shares", type=float)
        trade.add_argument("price", type=float)
    commands.add_parser("predict", help="Refresh the 7-day portfolio forecast.")
    commands.add_parser("discover", help="List AI-discovered micro-cap candidates.")
    commands.add_parser("overview", help="Show major market indices.")
    analyze = commands.add_parser("analyze", help="Deep-dive BUY/SELL/HOLD analysis.")
    analyze.add_argument("ticker")
    analyze.add_argument(
        "--act",
        action="store_true",
        help="Act on the recommendation: max-buy on BUY, exit all on SELL.",
    )
    search = commands.add_parser("search", help="Look up one ticker.")
    search.add_argument("ticker")
    chat = commands.add_parser("chat", help="Ask the AI trader a question.")
    chat.add_argument("message", nargs="+")
    commands.add_parser("history", help="Print the valuation history.")
    commands.add_parser("transactions", help="Print the transaction log.")
    commands.add_parser("logout", help="Forget the saved user (portfolio is kept).")
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _print_sources(sources) -> None:
    for source in sources:
        print(f"  [source] {source.title}: {source.uri}")


def _print_trade(result: TradeResult) -> None:
    if result.accepted:
        print(f"OK  {result.message}")
    else:
        print(f"REJECTED ({result.error.value}): {result.message}")


def _print_status(session: TradingSession) -> None:
    ledger = session.ledger
    print(f"User:        {session.user.name} <{session.user.email}>")
    print(f"Cash:        ${ledger.cash:,.2f}")
    print(f"Total value: ${session.total_value:,.2f}")
    print(f"P&L:         {session.pnl:+,.2f}")
    holdings = ledger.holdings()
    if not holdings:
        print("Holdings:    none")
        return
    print("Holdings:")
    for h in holdings:
        print(
            f"  {h.ticker:<8} {h.shares:>10g} sh  avg ${h.avg_cost:,.2f}  "
            f"mark ${h.current_price:,.2f}  value ${market_value(h):,.2f}  "
            f"unrealized {unrealized_pnl(h):+,.2f}"
        )


async def _run_command(args: argparse.Namespace, session: TradingSession) -> int:
    command = args.command

    if command == "status":
        _print_status(session)
    elif command in ("buy", "sell"):
        result = session.execute_trade(TradeType(command.upper()), args.ticker, args.price, args.shares)
        _print_trade(result)
        return 0 if result.accepted else 1
    elif command == "predict":
        response = await session.refresh_predictions()
        for point in response.predictions:
            print(f"  {point.timestamp}: ${point.total_value:,.2f}")
        print(response.rationale)
        _print_sources(response.sources)
    elif command == "discover":
        response = await session.discover()
        if not response.stocks:
            print("No candidates available right now.")
        for stock in response.stocks:
            print(
                f"  {stock.ticker:<6} ${stock.price:>8.2f} {stock.change_percent:+.2f}%  "
                f"{stock.market_cap:<8} {stock.sentiment:<8} {stock.reasoning}"
            )
        _print_sources(response.sources)
    elif command == "overview":
        response = await session.market_overview()
        if not response.indices:
            print("Market data unavailable.")
        for index in response.indices:
            print(f"  {index.name:<10} {index.value:>12} {index.change:>10} ({index.change_percent})")
        _print_sources(response.sources)
    elif command == "analyze":
        analysis = await session.analyze(args.ticker)
        print(
            f"{analysis.ticker}: {analysis.recommendation} @ ${analysis.current_price:.2f} "
            f"(confidence {analysis.confidence:.0f}%)"
        )
        print(analysis.analysis)
        _print_sources(analysis.sources)
        if args.act and analysis.recommendation == "BUY":
            _print_trade(session.buy_max(analysis))
        elif args.act and analysis.recommendation == "SELL":
            _print_trade(session.exit_all(analysis))
    elif command == "search":
        found = await session.search(args.ticker)
        stock = found.stock
        print(f"{stock.ticker} ({stock.name}): ${stock.price:.2f} {stock.change_percent:+.2f}%  {stock.market_cap}")
        print(stock.reasoning)
        _print_sources(found.sources)
    elif command == "chat":
        reply = await session.chat(" ".join(args.message))
        print(reply.text)
        _print_sources(reply.sources)
    elif command == "history":
        for snapshot in session.portfolio().history:
            marker = " (forecast)" if snapshot.is_prediction else ""
            print(f"  {snapshot.timestamp}: ${snapshot.total_value:,.2f}{marker}")
    elif command == "transactions":
        transactions = session.ledger.transactions()
        if not transactions:
            print("No transactions yet.")
        for tx in transactions:
            print(f"  {tx.timestamp} {tx.type.value:<4} {tx.shares:g} {tx.ticker} @ ${tx.price:.2f}  [{tx.id}]")
    return 0


async def _main(argv: list[str] | None = None) -> int:
    load_dotenv()  # auto-load .env file if present
    args = _parse_args(argv)
    _setup_logging(args.log_level)

    config = SessionConfig.from_yaml(args.config) if args.config else SessionConfig()
    logger.info("Config loaded: gateway='%s', store='%s'", config.advisor.gateway, config.store.backend)

    store = SessionStore(create_store(config.store))
    session = TradingSession(config, create_gateway(config.advisor), store)

    if args.command == "logout":
        session.logout()
        print("Logged out.")
        return 0

    if session.resume() is None:
        session.login()

    try:
        status = await _run_command(args, session)
    except AdvisoryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if session.persist_error is not None:
        print(f"Warning: changes were not saved: {session.persist_error}", file=sys.stderr)
        return 3
    return status


def main() -> None:
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
