from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol


@dataclass
class LLMReply:
    """Raw completion text plus provenance records (``{"title", "uri"}``)."""

    text: str
    sources: List[Dict[str, str]] = field(default_factory=list)
    raw: Any = None


class LLMClientError(RuntimeError):
    """The provider could not be reached or kept failing after retries."""


class LLMClient(Protocol):
    async def complete(self, system: str, user: str) -> LLMReply:
        ...
