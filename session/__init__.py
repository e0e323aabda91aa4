"""User session orchestration and persistence."""

from session.store import InMemoryStore, JsonFileStore, KeyValueStore, SessionStore, create_store
from session.trading_session import NotLoggedIn, TradingSession

__all__ = [
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "NotLoggedIn",
    "SessionStore",
    "TradingSession",
    "create_store",
]
