"""AI-backed market research: discovery, analysis, forecasting, overview."""

from advisory.base import AdvisoryGateway
from advisory.errors import AdvisoryError, LookupFailed, MalformedResponse
from advisory.registry import create_gateway

__all__ = [
    "AdvisoryError",
    "AdvisoryGateway",
    "LookupFailed",
    "MalformedResponse",
    "create_gateway",
]
