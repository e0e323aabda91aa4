"""LLM-backed advisory gateway.

Each operation renders a prompt, appends the declared JSON schema, sends it
through an ``LLMClient`` and validates the reply. Provenance records come
from the client (search grounding / citations), never from the JSON body.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from advisory import prompts
from advisory.base import AdvisoryGateway
from advisory.errors import AdvisoryError, LookupFailed, MalformedResponse
from advisory.registry import register
from advisory.schemas import (
    ANALYSIS_SCHEMA,
    DISCOVERY_SCHEMA,
    MARKET_OVERVIEW_SCHEMA,
    PREDICTION_SCHEMA,
    STOCK_LOOKUP_SCHEMA,
    parse_response,
)
from api_client.llm.client import LLMClient, LLMClientError, LLMReply
from api_client.llm.tracing import build_trace_entry
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

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

PREDICTION_DAYS = 7
DISCOVERY_COUNT = 5


@register("llm")
class LLMAdvisoryGateway(AdvisoryGateway):
    """Advisory gateway backed by a chat model (OpenAI or Anthropic via LangChain)."""

    def __init__(
        self,
        config: AdvisorConfig,
        client: LLMClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(config)
        if client is None:
            from api_client.llm.langchain_client import LangChainClient

            client = LangChainClient(config)
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def discover(self) -> DiscoveryResponse:
        prompt = prompts.build_discover_prompt(DISCOVERY_COUNT)
        reply, payload = await self._request("discover", prompt, DISCOVERY_SCHEMA)
        stamp = self._clock().isoformat(timespec="seconds")
        for stock in payload["stocks"]:
            stock.setdefault("lastUpdated", stamp)
        return _build(DiscoveryResponse, payload, reply, "discover")

    async def analyze(self, ticker: str) -> AnalysisResponse:
        prompt = prompts.build_analyze_prompt(ticker)
        reply, payload = await self._request("analyze", prompt, ANALYSIS_SCHEMA)
        return _build(AnalysisResponse, payload, reply, "analyze")

    async def predict(self, holdings: Sequence[Holding], cash: float) -> PredictionResponse:
        tomorrow: date = self._clock().date() + timedelta(days=1)
        prompt = prompts.build_predict_prompt(
            holdings, cash, start_date=tomorrow.isoformat(), days=PREDICTION_DAYS
        )
        reply, payload = await self._request("predict", prompt, PREDICTION_SCHEMA)
        return _build(PredictionResponse, payload, reply, "predict")

    async def market_overview(self) -> MarketOverviewResponse:
        prompt = prompts.build_market_overview_prompt()
        reply, payload = await self._request("market_overview", prompt, MARKET_OVERVIEW_SCHEMA)
        return _build(MarketOverviewResponse, payload, reply, "market_overview")

    async def search(self, ticker: str) -> StockLookupResponse:
        prompt = prompts.build_search_prompt(ticker)
        try:
            reply, payload = await self._request("search", prompt, STOCK_LOOKUP_SCHEMA)
            payload["stock"].setdefault("lastUpdated", self._clock().isoformat(timespec="seconds"))
            return _build(StockLookupResponse, payload, reply, "search")
        except MalformedResponse as exc:
            raise LookupFailed(f"Failed to find data for ticker: {ticker}") from exc

    async def chat(self, message: str, history: Sequence[ChatMessage] = ()) -> ChatReply:
        user_prompt = prompts.build_chat_prompt(message, history)
        reply = await self._complete("chat", prompts.CHAT_SYSTEM_PROMPT, user_prompt)
        return ChatReply(text=reply.text, sources=reply.sources)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _complete(self, prompt_id: str, system: str, user: str) -> LLMReply:
        try:
            reply = await self._client.complete(system, user)
        except LLMClientError as exc:
            raise AdvisoryError(f"{prompt_id} request failed: {exc}") from exc
        logger.debug(
            "Advisory trace: %s",
            build_trace_entry(self.config.llm_model, prompt_id, reply.text, len(reply.sources)),
        )
        return reply

    async def _request(
        self, prompt_id: str, prompt: str, schema: dict[str, Any]
    ) -> tuple[LLMReply, dict[str, Any]]:
        reply = await self._complete(
            prompt_id, prompts.RESEARCH_SYSTEM_PROMPT, prompts.with_schema(prompt, schema)
        )
        return reply, parse_response(reply.text, schema, prompt_id)


def _build(model: type[ResponseT], payload: dict[str, Any], reply: LLMReply, name: str) -> ResponseT:
    """Validate *payload* into *model*, attaching the reply's sources."""
    try:
        return model.model_validate({**payload, "sources": reply.sources})
    except ValidationError as exc:
        raise MalformedResponse(f"{name} response could not be parsed: {exc}") from exc
