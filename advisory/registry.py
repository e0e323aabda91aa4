"""Gateway registry: maps config strings to AdvisoryGateway subclasses.

Usage::

    from advisory.registry import create_gateway

    gateway = create_gateway(advisor_config)
"""

from __future__ import annotations

from typing import Type

from advisory.base import AdvisoryGateway
from models.config import AdvisorConfig

# ---------------------------------------------------------------------------
# Registry mapping
# ---------------------------------------------------------------------------
_REGISTRY: dict[str, Type[AdvisoryGateway]] = {}


def register(name: str):
    """Decorator to register an ``AdvisoryGateway`` subclass under *name*."""

    def _decorator(cls: Type[AdvisoryGateway]) -> Type[AdvisoryGateway]:
        if name in _REGISTRY:
            raise ValueError(f"Advisory gateway '{name}' is already registered.")
        _REGISTRY[name] = cls
        return cls

    return _decorator


def create_gateway(config: AdvisorConfig) -> AdvisoryGateway:
    """Instantiate the gateway specified in *config*.

    Raises ``KeyError`` if ``config.gateway`` is not registered.
    """
    _ensure_builtins_loaded()

    key = config.gateway
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(
            f"Unknown advisory gateway '{key}'. Available: {available}."
        )
    return _REGISTRY[key](config)


def available_gateways() -> list[str]:
    _ensure_builtins_loaded()
    return sorted(_REGISTRY)


def _ensure_builtins_loaded() -> None:
    """Import built-in gateway modules so their ``@register`` calls execute."""
    import advisory.llm_gateway  # noqa: F401
    import advisory.stub  # noqa: F401
