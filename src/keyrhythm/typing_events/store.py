"""Immutable, group-partitioned TypingEvent store.

Events keep their ingestion order inside each group; that order is the
replay order used by the playback scheduler. Groups are listed in the order
they were first seen.
"""

from __future__ import annotations

from typing import Iterable, Iterator

import pandas as pd

from keyrhythm.typing_events.events import TypingEvent
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Column order for to_frame(); mirrors the per-group CSV layout plus 'group'.
FRAME_COLUMNS = ["group", "Hand", "Hold", "Direction", "Latency", "Flight"]
NUMERIC_COLUMNS = ("Hold", "Latency", "Flight")
TEXT_COLUMNS = ("Hand", "Direction")


class TypingEventStore:
    """Read-only collection of TypingEvents partitioned by group label.

    Attributes:
        groups: Group labels in first-seen order.
    """

    def __init__(self, events: Iterable[TypingEvent]) -> None:
        partitions: dict[str, list[TypingEvent]] = {}
        for ev in events:
            partitions.setdefault(ev.group, []).append(ev)
        self._partitions: dict[str, tuple[TypingEvent, ...]] = {
            group: tuple(evs) for group, evs in partitions.items()
        }
        logger.debug(
            "TypingEventStore: %d group(s), %d event(s)",
            len(self._partitions),
            len(self),
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, *, group_col: str = "group") -> "TypingEventStore":
        """Build a store from a long-format DataFrame (one row per keystroke).

        Numeric columns are coerced (unparseable -> NaN); missing optional
        columns become NaN (numeric) or "" (categorical).

        Raises:
            ValueError: If group_col is missing.
        """
        if group_col not in df.columns:
            raise ValueError(f"df must contain required column {group_col!r}")

        missing = [c for c in NUMERIC_COLUMNS + TEXT_COLUMNS if c not in df.columns]
        if missing:
            logger.warning(f"missing column(s) {missing}, filled with NaN/empty")

        numeric = {
            col: (
                pd.to_numeric(df[col], errors="coerce").astype(float)
                if col in df.columns
                else pd.Series(float("nan"), index=df.index)
            )
            for col in NUMERIC_COLUMNS
        }
        text = {
            col: df[col].fillna("").astype(str) if col in df.columns else pd.Series("", index=df.index)
            for col in TEXT_COLUMNS
        }
        groups = df[group_col].astype(str)

        events = [
            TypingEvent(
                group=groups.iloc[i],
                hold=float(numeric["Hold"].iloc[i]),
                flight=float(numeric["Flight"].iloc[i]),
                hand=text["Hand"].iloc[i],
                direction=text["Direction"].iloc[i],
                latency=float(numeric["Latency"].iloc[i]),
            )
            for i in range(len(df))
        ]
        return cls(events)

    @property
    def groups(self) -> tuple[str, ...]:
        return tuple(self._partitions)

    def events_for(self, group: str) -> tuple[TypingEvent, ...]:
        """Events of ``group`` in ingestion order.

        Raises:
            KeyError: If the group is unknown.
        """
        try:
            return self._partitions[group]
        except KeyError:
            raise KeyError(f"Unknown group {group!r}; known groups: {list(self._partitions)}") from None

    def to_frame(self) -> pd.DataFrame:
        """Long-format DataFrame of all events (group order, then ingestion order)."""
        return pd.DataFrame([ev.to_row() for ev in self], columns=FRAME_COLUMNS)

    def __contains__(self, group: object) -> bool:
        return group in self._partitions

    def __iter__(self) -> Iterator[TypingEvent]:
        for evs in self._partitions.values():
            yield from evs

    def __len__(self) -> int:
        return sum(len(evs) for evs in self._partitions.values())

    def __repr__(self) -> str:
        sizes = ", ".join(f"{g}={len(evs)}" for g, evs in self._partitions.items())
        return f"TypingEventStore({sizes})"
