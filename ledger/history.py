"""Valuation history: a permanent actual prefix plus a replaceable forecast suffix.

The series always reads as::

    [actual, actual, ..., actual, prediction, ..., prediction]

Actual snapshots are recorded on every trade and are never rewritten.
Prediction snapshots are owned by the latest forecast: a new forecast
replaces the whole suffix, and a new actual snapshot discards it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from models.portfolio import Snapshot

logger = logging.getLogger(__name__)


class HistoryTrack:
    """Ordered valuation snapshots with a volatile prediction suffix."""

    def __init__(self, snapshots: Iterable[Snapshot] = ()) -> None:
        self._actuals: list[Snapshot] = []
        self._predictions: list[Snapshot] = []
        # Split by flag so a loaded record always yields a contiguous prefix.
        for snapshot in snapshots:
            if snapshot.is_prediction:
                self._predictions.append(snapshot)
            else:
                self._actuals.append(snapshot)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def append_actual(self, snapshot: Snapshot) -> None:
        """Drop any forecast, then record *snapshot* as a realised valuation.

        Raises ``ValueError`` if *snapshot* is flagged as a prediction or is
        older than the last actual snapshot. Nothing is changed in that case.
        """
        if snapshot.is_prediction:
            raise ValueError("append_actual() received a prediction snapshot.")
        if self._actuals and snapshot.timestamp < self._actuals[-1].timestamp:
            raise ValueError(
                f"Snapshot at {snapshot.timestamp} is older than the last "
                f"recorded valuation at {self._actuals[-1].timestamp}."
            )

        if self._predictions:
            logger.debug("Discarding %d stale prediction(s).", len(self._predictions))
        self._predictions = []
        self._actuals.append(snapshot)

    def replace_predictions(self, snapshots: Iterable[Snapshot]) -> None:
        """Swap the forecast suffix for *snapshots*, kept in received order.

        Each entry is re-flagged ``is_prediction=True``. No continuity check
        is made against the actual prefix.
        """
        self._predictions = [
            s.model_copy(update={"is_prediction": True}) for s in snapshots
        ]

    def clear_predictions(self) -> None:
        self._predictions = []

    def current_series(self) -> list[Snapshot]:
        """Return the full series (actuals then predictions) as a new list."""
        return self._actuals + self._predictions

    def actuals(self) -> list[Snapshot]:
        return list(self._actuals)

    def predictions(self) -> list[Snapshot]:
        return list(self._predictions)

    def last_actual(self) -> Snapshot | None:
        return self._actuals[-1] if self._actuals else None

    def __len__(self) -> int:
        return len(self._actuals) + len(self._predictions)
