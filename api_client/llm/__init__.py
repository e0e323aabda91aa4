from api_client.llm.client import LLMClient, LLMClientError, LLMReply

__all__ = ["LLMClient", "LLMClientError", "LLMReply"]
