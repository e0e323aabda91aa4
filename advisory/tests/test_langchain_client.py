from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from api_client.llm.client import LLMClientError
from api_client.llm.langchain_client import (
    LangChainClient,
    _create_llm,
    extract_sources,
    message_text,
)
from models.config import AdvisorConfig


def _run_async(coro):
    return asyncio.run(coro)


def _client(*results, max_retries: int = 3) -> tuple[LangChainClient, MagicMock]:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=list(results))
    return LangChainClient(AdvisorConfig(max_retries=max_retries), llm=llm), llm


# =============================================================================
# complete()
# =============================================================================


class TestComplete:
    def test_returns_text_and_sources(self):
        message = AIMessage(
            content="ok",
            response_metadata={
                "grounding_metadata": {
                    "grounding_chunks": [{"web": {"title": "Wire", "uri": "https://wire.example.com"}}]
                }
            },
        )
        client, llm = _client(message)

        reply = _run_async(client.complete("sys", "user"))

        assert reply.text == "ok"
        assert reply.sources == [{"title": "Wire", "uri": "https://wire.example.com"}]
        assert reply.raw is message
        sent = llm.ainvoke.call_args.args[0]
        assert [m.content for m in sent] == ["sys", "user"]

    @patch("api_client.llm.langchain_client.asyncio.sleep", new_callable=AsyncMock)
    def test_retries_then_succeeds(self, sleep):
        client, llm = _client(ConnectionError("boom"), AIMessage(content="second try"))

        reply = _run_async(client.complete("sys", "user"))

        assert reply.text == "second try"
        assert llm.ainvoke.await_count == 2
        sleep.assert_awaited_once_with(1)

    @patch("api_client.llm.langchain_client.asyncio.sleep", new_callable=AsyncMock)
    def test_raises_after_last_attempt(self, sleep):
        client, llm = _client(
            TimeoutError("slow"), TimeoutError("slow"), TimeoutError("slow"), max_retries=3
        )

        with pytest.raises(LLMClientError, match="all 3 attempts failed"):
            _run_async(client.complete("sys", "user"))

        assert llm.ainvoke.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1, 2]


# =============================================================================
# Helpers
# =============================================================================


class TestMessageText:
    def test_string_content(self):
        assert message_text(AIMessage(content="hello")) == "hello"

    def test_block_content(self):
        message = AIMessage(content=[{"type": "text", "text": "a"}, "b", {"type": "image_url", "image_url": {"url": "x"}}])
        assert message_text(message) == "ab"


class TestExtractSources:
    def test_camel_case_grounding_and_default_title(self):
        message = AIMessage(
            content="x",
            response_metadata={
                "groundingMetadata": {
                    "groundingChunks": [
                        {"web": {"uri": "https://a.example.com"}},
                        {"retrievedContext": {"uri": "ignored"}},
                    ]
                }
            },
        )
        assert extract_sources(message) == [{"title": "Source", "uri": "https://a.example.com"}]

    def test_citations_are_deduplicated(self):
        message = AIMessage(
            content=[
                {
                    "type": "text",
                    "text": "ABCD rose.",
                    "annotations": [
                        {"type": "url_citation", "title": "A", "url": "https://a.example.com"},
                        {"type": "url_citation", "title": "A again", "url": "https://a.example.com"},
                    ],
                },
                {
                    "type": "text",
                    "text": " More.",
                    "citations": [{"title": "B", "url": "https://b.example.com"}, {"title": "no uri"}],
                },
            ]
        )
        assert extract_sources(message) == [
            {"title": "A", "uri": "https://a.example.com"},
            {"title": "B", "uri": "https://b.example.com"},
        ]

    def test_no_metadata(self):
        assert extract_sources(AIMessage(content="plain")) == []


def test_unknown_provider_rejected():
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        _create_llm(AdvisorConfig(llm_provider="cohere"))


def test_trace_entry_truncates_long_responses():
    from api_client.llm.tracing import MAX_TRACE_CHARS, build_trace_entry

    entry = build_trace_entry("gpt-4o-mini", "predict", "x" * (MAX_TRACE_CHARS + 5), source_count=2)

    assert len(entry["raw_response"]) == MAX_TRACE_CHARS
    assert entry["truncated"] is True
    assert entry["source_count"] == 2
