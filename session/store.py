"""Session persistence: a key-value capability and the three named session entries.

The on-disk layout of ``JsonFileStore`` is one file per key::

    {path}/
    ├── trader_user.json
    ├── portfolio_{user_id}.json
    └── transactions_{user_id}.json

Every save overwrites the entry in full.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from models.advisory import User
from models.config import StoreConfig
from models.portfolio import Portfolio
from models.trade import Transaction

logger = logging.getLogger(__name__)

USER_KEY = "trader_user"

_TRANSACTIONS = TypeAdapter(list[Transaction])


class KeyValueStore(Protocol):
    """Opaque storage for JSON-serializable values."""

    def load(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` if *key* is absent."""

    def save(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove *key*; absent keys are ignored."""


class InMemoryStore:
    """Process-lifetime store. Values are JSON round-tripped on save."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """Directory-backed store writing one pretty-printed JSON file per key."""

    def __init__(self, path: str | Path) -> None:
        self._dir = Path(path)

    @property
    def path(self) -> Path:
        return self._dir

    def load(self, key: str) -> Any | None:
        path = self._file(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def save(self, key: str, value: Any) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._file(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(value, indent=2, default=str), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._file(key).unlink(missing_ok=True)

    def _file(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._dir / f"{safe}.json"


def create_store(config: StoreConfig) -> KeyValueStore:
    if config.backend == "memory":
        return InMemoryStore()
    return JsonFileStore(config.path)


class SessionStore:
    """Typed access to the user, portfolio and transaction entries.

    Entries that fail to decode or validate are logged and treated as
    absent, so a corrupt record starts a fresh session instead of crashing.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    @staticmethod
    def portfolio_key(user_id: str) -> str:
        return f"portfolio_{user_id}"

    @staticmethod
    def transactions_key(user_id: str) -> str:
        return f"transactions_{user_id}"

    # ---- user ----------------------------------------------------------

    def load_user(self) -> User | None:
        return self._load(USER_KEY, User.model_validate)

    def save_user(self, user: User) -> None:
        self._backend.save(USER_KEY, user.model_dump(mode="json"))

    def clear_user(self) -> None:
        self._backend.delete(USER_KEY)

    # ---- portfolio -----------------------------------------------------

    def load_portfolio(self, user_id: str) -> Portfolio | None:
        return self._load(self.portfolio_key(user_id), Portfolio.model_validate)

    def save_portfolio(self, user_id: str, portfolio: Portfolio) -> None:
        self._backend.save(
            self.portfolio_key(user_id), portfolio.model_dump(mode="json", by_alias=True)
        )

    # ---- transactions --------------------------------------------------

    def load_transactions(self, user_id: str) -> list[Transaction]:
        return self._load(self.transactions_key(user_id), _TRANSACTIONS.validate_python) or []

    def save_transactions(self, user_id: str, transactions: list[Transaction]) -> None:
        self._backend.save(
            self.transactions_key(user_id), _TRANSACTIONS.dump_python(transactions, mode="json")
        )

    # ------------------------------------------------------------------

    def _load(self, key: str, parse):
        try:
            raw = self._backend.load(key)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read stored entry '%s': %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return parse(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid stored entry '%s': %s", key, exc)
            return None
