"""Session configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
ledger, the advisory gateways and the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


class AdvisorConfig(BaseModel):
    """Configuration for the advisory gateway."""

    gateway: str = Field(
        default="llm",
        description="Registered gateway name, e.g. 'llm' or 'stub'.",
    )
    llm_provider: str = Field(
        default="openai",
        description="LLM provider identifier, e.g. 'openai', 'anthropic'.",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model name, e.g. 'gpt-4o', 'claude-sonnet-4-20250514'.",
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for the LLM.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per advisory request before giving up.",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    web_search: bool = Field(
        default=False,
        description="Bind the provider's hosted web-search tool so answers carry sources.",
    )


class LedgerConfig(BaseModel):
    """Configuration for the portfolio ledger."""

    initial_cash: float = Field(
        default=100.0,
        gt=0,
        description="Starting cash balance for a brand-new portfolio.",
    )


class StoreConfig(BaseModel):
    """Where session state is persisted."""

    backend: Literal["memory", "json"] = Field(
        default="json",
        description="'memory' keeps state for the process lifetime only.",
    )
    path: str = Field(
        default=".trader_state",
        description="Directory for the 'json' backend (one file per key).",
    )


class SessionConfig(BaseModel):
    """Top-level configuration for a trading session."""

    advisor: AdvisorConfig = Field(default_factory=AdvisorConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SessionConfig:
        """Load and validate a ``SessionConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
