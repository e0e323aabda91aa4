"""Prompt templates for the advisory gateways.

Prompts are loaded from .txt template files in this package directory and
rendered via Jinja2.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from models.portfolio import Holding

# ---------------------------------------------------------------------------
# Jinja2 environment — templates live next to this __init__.py
# ---------------------------------------------------------------------------

_TEMPLATE_DIR = Path(__file__).resolve().parent
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def _load(name: str) -> str:
    """Return the raw text of a template file (no rendering)."""
    return (_TEMPLATE_DIR / name).read_text(encoding="utf-8")


RESEARCH_SYSTEM_PROMPT: str = _load("research_system.txt")
CHAT_SYSTEM_PROMPT: str = _load("chat_system.txt")

DEFAULT_INDICES: tuple[str, ...] = ("S&P 500", "NASDAQ", "Bitcoin")


def render(name: str, **context: Any) -> str:
    return _env.get_template(name).render(**context)


def with_schema(prompt: str, schema: dict[str, Any]) -> str:
    """Append the JSON output instructions for *schema* to *prompt*."""
    return prompt + render(
        "json_output_instructions.txt", schema_json=json.dumps(schema, indent=2)
    )


def describe_holdings(holdings: Sequence[Holding]) -> str:
    """``"5 shares of ABC, 2 shares of XYZ"``, or ``"no stocks"``."""
    return ", ".join(f"{h.shares:g} shares of {h.ticker}" for h in holdings) or "no stocks"


def build_discover_prompt(count: int = 5) -> str:
    return render("discover.txt", count=count)


def build_search_prompt(ticker: str) -> str:
    return render("search.txt", ticker=ticker)


def build_analyze_prompt(ticker: str, budget: float = 100.0) -> str:
    return render("analyze.txt", ticker=ticker, budget=budget)


def build_predict_prompt(
    holdings: Sequence[Holding],
    cash: float,
    start_date: str,
    days: int = 7,
) -> str:
    return render(
        "predict.txt",
        cash=cash,
        holdings_text=describe_holdings(holdings),
        start_date=start_date,
        days=days,
    )


def build_market_overview_prompt(indices: Sequence[str] = DEFAULT_INDICES) -> str:
    return render("market_overview.txt", indices=list(indices))


def build_chat_prompt(message: str, history: Sequence[Any] = ()) -> str:
    """Fold prior turns into a single user prompt ending with *message*."""
    if not history:
        return message
    lines = [f"{turn.role.upper()}: {turn.content}" for turn in history]
    lines.append(f"USER: {message}")
    return "\n\n".join(lines)
