"""Day balancing result models."""
from datetime import date
from typing import Optional

from pydantic import BaseModel

from timebalance.models.time_entry import TimeEntry


class AdjustedEntry(BaseModel):
    """Balanced duration proposed for one time entry, in seconds."""

    id: str
    original_duration: int
    unrounded_duration: float
    duration: int


class DayBalance(BaseModel):
    """Outcome of balancing one day's entries against a work schedule.

    ``time_difference_hours`` is the gap before balancing (positive means
    time is missing). ``rounded_difference_hours`` is what remains after
    rounding and residual correction. Both are None when there was nothing
    to balance.
    """

    time_difference_hours: Optional[float] = None
    rounded_difference_hours: Optional[float] = None
    target_hours: Optional[float] = None
    adjusted_entries: list[AdjustedEntry] = []
    requires_confirmation: bool = False


class UndoneEntry(BaseModel):
    """An entry whose correction was (or will be) cleared."""

    id: str
    corrected_duration_cleared: bool = True


class DaySummary(BaseModel):
    """Completed entries of one local day with recorded and effective totals."""

    day: date
    entries: list[TimeEntry]
    total_duration: int
    total_effective_duration: int
    has_corrections: bool
