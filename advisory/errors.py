"""Advisory gateway failures.

Callers decide per call site whether a failure falls back to an empty
payload or surfaces to the user; see ``session.trading_session``.
"""


class AdvisoryError(Exception):
    """The advisory service could not produce a result."""


class MalformedResponse(AdvisoryError):
    """The response was not valid JSON or did not match the declared schema."""


class LookupFailed(AdvisoryError):
    """A ticker lookup returned nothing usable."""
