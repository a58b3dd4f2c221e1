"""CSV ingestion for per-medication keystroke files.

One CSV per medication group, columns Hand, Hold, Direction, Latency,
Flight. Numeric fields that fail to parse become NaN; rows are never
dropped here (excluding bad values is the aggregator's job).
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from keyrhythm.typing_events.events import TypingEvent
from keyrhythm.typing_events.store import TypingEventStore
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MedicationGroup:
    """A medication category and the CSV file holding its keystrokes."""
    name: str
    filename: str


MEDICATION_GROUPS: tuple[MedicationGroup, ...] = (
    MedicationGroup("Levadopa", "levadopa_events.csv"),
    MedicationGroup("DA", "da_events.csv"),
    MedicationGroup("MAOB", "maob_events.csv"),
    MedicationGroup("Other", "other_events.csv"),
    MedicationGroup("No Med", "nomed_events.csv"),
)


def get_data_dir() -> Path:
    """Resolve the data/ directory bundled inside the keyrhythm package."""
    return Path(str(files("keyrhythm") / "data"))


def frame_to_events(df: pd.DataFrame, group: str) -> list[TypingEvent]:
    """Convert one group's raw CSV frame into TypingEvents, keeping row order."""
    df = df.rename(columns=lambda c: str(c).strip())
    if len(df) == 0:
        return []
    return list(TypingEventStore.from_frame(df.assign(group=group)))


def load_group_csv(path: Union[str, Path], group: str) -> list[TypingEvent]:
    """Load one medication CSV and tag every row with ``group``.

    Raises:
        FileNotFoundError: If the CSV does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV not found: {path}")
    # Read everything as text so bad numerics surface as NaN in one place.
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    events = frame_to_events(df, group)
    logger.info(f"loaded {len(events)} event(s) for group {group!r} from {path.name}")
    return events


def load_dataset(
    data_dir: Optional[Union[str, Path]] = None,
    *,
    groups: Iterable[MedicationGroup] = MEDICATION_GROUPS,
    skip_missing: bool = False,
) -> TypingEventStore:
    """Load every medication group into one TypingEventStore.

    Args:
        data_dir: Directory holding the CSVs. Defaults to get_data_dir().
        groups: Medication groups to load, in display order.
        skip_missing: Log and skip groups whose CSV is missing instead of raising.

    Raises:
        FileNotFoundError: If data_dir does not exist, or a group CSV is
            missing and skip_missing is False.
    """
    data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")
    events: list[TypingEvent] = []
    for med in groups:
        path = data_dir / med.filename
        try:
            events.extend(load_group_csv(path, med.name))
        except FileNotFoundError:
            if not skip_missing:
                raise
            logger.warning(f"skipping group {med.name!r}: {path} not found")
    return TypingEventStore(events)
