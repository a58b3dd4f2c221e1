"""TypingEvent record and the Metric selector.

A TypingEvent is one keystroke as recorded by the ingestion side: how long
the key was held, the gap before the next key, and a couple of opaque
categorical fields. Numeric fields are NaN when the source value could not
be parsed; downstream consumers decide what to do with them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Metric(Enum):
    """Numeric TypingEvent field selectable for statistics.

    The value is the CSV column name; ``attribute`` is the TypingEvent field.
    """
    HOLD = "Hold"
    LATENCY = "Latency"
    FLIGHT = "Flight"

    @property
    def attribute(self) -> str:
        return self.name.lower()

    def value_of(self, event: "TypingEvent") -> float:
        """Return this metric's value for ``event``."""
        return getattr(event, self.attribute)

    @classmethod
    def parse(cls, value: Any) -> "Metric":
        """Resolve a Metric from a member, CSV column name or attribute name.

        Raises:
            ValueError: If value does not name a metric.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for m in cls:
            if key in (m.value.lower(), m.attribute):
                return m
        raise ValueError(f"Unknown metric {value!r}; expected one of {[m.value for m in cls]}")


# Metrics offered by the box-plot selector.
BOX_PLOT_METRICS = (Metric.HOLD, Metric.LATENCY)


@dataclass(frozen=True)
class TypingEvent:
    """One recorded keystroke (durations in milliseconds)."""

    group: str
    hold: float
    flight: float
    hand: str = ""
    direction: str = ""
    latency: float = math.nan

    def __post_init__(self) -> None:
        if not isinstance(self.group, str) or not self.group:
            raise ValueError(f"TypingEvent.group must be a non-empty string, got {self.group!r}")

    def to_row(self) -> dict[str, Any]:
        """Row dict using the CSV column names (plus 'group')."""
        return {
            "group": self.group,
            "Hand": self.hand,
            "Hold": self.hold,
            "Direction": self.direction,
            "Latency": self.latency,
            "Flight": self.flight,
        }
