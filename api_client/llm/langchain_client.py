"""LangChain-backed ``LLMClient``: one system + user prompt in, text + sources out.

Transient provider errors (connection errors, rate limits, timeouts) are
retried with exponential backoff; after the last attempt the failure is
raised as ``LLMClientError``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from api_client.llm.client import LLMClientError, LLMReply
from models.config import AdvisorConfig

logger = logging.getLogger(__name__)

# Provider-hosted search tools, bound when ``web_search`` is enabled.
_WEB_SEARCH_TOOLS: dict[str, dict[str, Any]] = {
    "openai": {"type": "web_search_preview"},
    "anthropic": {"type": "web_search_20250305", "name": "web_search", "max_uses": 5},
}


def _create_llm(config: AdvisorConfig):
    """Instantiate the appropriate LangChain chat model from config."""
    provider = config.llm_provider.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            model=config.llm_model,
            temperature=config.temperature,
            api_key=os.environ.get("OPENAI_API_KEY", "sk-dummy"),
            timeout=config.request_timeout,
            use_responses_api=config.web_search,
        )
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        llm = ChatAnthropic(
            model=config.llm_model,
            temperature=config.temperature,
            timeout=config.request_timeout,
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )

    if config.web_search:
        return llm.bind_tools([_WEB_SEARCH_TOOLS[provider]])
    return llm


class LangChainClient:
    """Async chat-completion client over a LangChain chat model."""

    def __init__(self, config: AdvisorConfig, llm: Any = None) -> None:
        self._config = config
        self._llm = llm if llm is not None else _create_llm(config)

    @property
    def model_name(self) -> str:
        return self._config.llm_model

    async def complete(self, system: str, user: str) -> LLMReply:
        max_retries = self._config.max_retries
        for attempt in range(max_retries):
            try:
                message = await self._llm.ainvoke([
                    SystemMessage(content=system),
                    HumanMessage(content=user),
                ])
            except Exception as exc:
                if attempt < max_retries - 1:
                    wait = 2 ** attempt  # 1s, 2s, 4s
                    logger.warning(
                        "LLM call failed with %s; retrying in %ss (attempt %d/%d).",
                        type(exc).__name__,
                        wait,
                        attempt + 1,
                        max_retries,
                    )
                    await asyncio.sleep(wait)
                    continue
                raise LLMClientError(
                    f"{type(exc).__name__}: {exc} (all {max_retries} attempts failed)"
                ) from exc
            return LLMReply(
                text=message_text(message),
                sources=extract_sources(message),
                raw=message,
            )
        raise LLMClientError("LLM client configured with zero attempts.")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def message_text(message: Any) -> str:
    """Concatenate the text parts of a chat message's content."""
    content = getattr(message, "content", "") or ""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def extract_sources(message: Any) -> list[dict[str, str]]:
    """Collect ``{"title", "uri"}`` provenance from a chat message.

    Reads search grounding metadata from ``response_metadata`` and URL
    citations attached to content blocks. Entries without a URI are skipped;
    a missing title becomes ``"Source"``.
    """
    sources: list[dict[str, str]] = []

    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if web:
            _add_source(sources, web.get("title"), web.get("uri"))

    content = getattr(message, "content", None)
    if isinstance(content, list):
        for block in content:
            if not isinstance(block, dict):
                continue
            for citation in (block.get("annotations") or []) + (block.get("citations") or []):
                if isinstance(citation, dict):
                    _add_source(sources, citation.get("title"), citation.get("url") or citation.get("uri"))

    return sources


def _add_source(sources: list[dict[str, str]], title: str | None, uri: str | None) -> None:
    if not uri:
        return
    if any(existing["uri"] == uri for existing in sources):
        return
    sources.append({"title": title or "Source", "uri": uri})
