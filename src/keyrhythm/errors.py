"""Exception family for keyrhythm.

Concrete errors live next to the code that raises them
(EmptySampleError in box_stats.summary, InvalidTempoError in
playback.scheduler) and all derive from KeyRhythmError.
"""

from __future__ import annotations


class KeyRhythmError(Exception):
    """Base class for all keyrhythm errors."""
