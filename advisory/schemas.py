"""Declared JSON response schemas and response parsing for advisory calls.

Each advisory operation sends a prompt together with one of the schemas
below and expects a single JSON document back. ``parse_response`` turns the
raw completion into a validated dict or raises ``MalformedResponse``.
"""

from __future__ import annotations

import json
import re
from typing import Any

from jsonschema import Draft202012Validator

from advisory.errors import MalformedResponse

_SENTIMENTS = ["Bullish", "Bearish", "Neutral"]

_STOCK_PROPERTIES: dict[str, Any] = {
    "ticker": {"type": "string"},
    "name": {"type": "string"},
    "price": {"type": "number", "minimum": 0},
    "changePercent": {"type": "number"},
    "marketCap": {"type": "string"},
    "reasoning": {"type": "string"},
    "sentiment": {"type": "string", "enum": _SENTIMENTS},
}

STOCK_LOOKUP_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "stock": {
            "type": "object",
            "properties": _STOCK_PROPERTIES,
            "required": ["ticker", "name", "price", "changePercent", "marketCap", "reasoning", "sentiment"],
        },
    },
    "required": ["stock"],
}

DISCOVERY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "stocks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": _STOCK_PROPERTIES,
                "required": ["ticker", "name", "price", "marketCap", "reasoning", "sentiment"],
            },
        },
    },
    "required": ["stocks"],
}

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "recommendation": {"type": "string", "enum": ["BUY", "SELL", "HOLD"]},
        "ticker": {"type": "string"},
        "currentPrice": {"type": "number", "minimum": 0},
        "confidence": {"type": "number", "minimum": 0, "maximum": 100},
        "analysis": {"type": "string"},
    },
    "required": ["recommendation", "ticker", "currentPrice", "confidence", "analysis"],
}

PREDICTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "predictions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "timestamp": {"type": "string", "description": "The date or day index"},
                    "totalValue": {"type": "number"},
                },
                "required": ["timestamp", "totalValue"],
            },
        },
        "rationale": {"type": "string"},
    },
    "required": ["predictions", "rationale"],
}

MARKET_OVERVIEW_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "indices": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "value": {"type": "string"},
                    "change": {"type": "string"},
                    "changePercent": {"type": "string"},
                    "isPositive": {"type": "boolean"},
                },
                "required": ["name", "value", "change", "changePercent", "isPositive"],
            },
        },
    },
    "required": ["indices"],
}


def parse_json(text: str) -> Any:
    """Parse JSON from an LLM response, handling markdown code blocks.

    Raises ``MalformedResponse`` when no JSON document can be decoded.
    """
    match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    json_str = match.group(1) if match else text
    json_str = json_str.strip()
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Response is not valid JSON: {exc}") from exc


def validate_payload(instance: Any, schema: dict[str, Any], name: str) -> None:
    """Raise ``MalformedResponse`` listing every violation of *schema*."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        details = "; ".join(
            f"{'.'.join(str(p) for p in error.path) or '(root)'}: {error.message}"
            for error in errors
        )
        raise MalformedResponse(f"{name} response failed schema validation: {details}")


def parse_response(text: str, schema: dict[str, Any], name: str) -> dict[str, Any]:
    """Decode *text* and validate it against *schema*."""
    payload = parse_json(text)
    validate_payload(payload, schema, name)
    return payload
