"""Day balancing - redistribute a day's entries onto a work schedule.

The recorded durations of a day are scaled so their sum matches the
schedule's effective working time, each share is rounded to the balancing
granularity, and any rounding residual is closed by moving whole steps onto
the entries with the largest unrounded share.

Everything here is pure: no I/O, no shared state.
"""
import logging
import math
from typing import Any, Iterable, Optional, Sequence

from timebalance.models.balance import AdjustedEntry, DayBalance, UndoneEntry
from timebalance.models.schedule import WorkSchedule

logger = logging.getLogger(__name__)

GRANULARITY_SECONDS = 900
TOLERANCE_HOURS = 0.01


class BalancingError(ValueError):
    """Base class for errors that prevent a day from being balanced."""


class ConfigurationError(BalancingError):
    """The work schedule does not describe a positive working time."""


class DegenerateInputError(BalancingError):
    """The entries cannot be redistributed proportionally."""


class ConfirmationRequiredError(BalancingError):
    """Applying the balance would leave a residual the user has not accepted."""

    def __init__(self, rounded_difference_hours: float):
        self.rounded_difference_hours = rounded_difference_hours
        if rounded_difference_hours > 0:
            message = f"After rounding {rounded_difference_hours:.2f}h are missing"
        else:
            message = f"After rounding {abs(rounded_difference_hours):.2f}h are too much"
        super().__init__(f"{message}; confirm to apply anyway")


def _field(entry: Any, name: str) -> Any:
    """Read a field from a model instance or a plain dict."""
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def round_to_granularity(seconds: float, granularity: int = GRANULARITY_SECONDS) -> int:
    """
    Round a non-negative duration to the nearest granularity step.

    Halves round up, unlike Python's ``round()``.

    Example:
        >>> round_to_granularity(1350)
        1800
    """
    return int(math.floor(seconds / granularity + 0.5)) * granularity


def target_seconds(schedule: WorkSchedule) -> int:
    """
    Effective working time of a complete schedule, in seconds.

    Raises:
        ConfigurationError: If times are malformed, work end is not after
            work start, or breaks use up the whole window
    """
    try:
        window = schedule.window_minutes()
    except ValueError as e:
        raise ConfigurationError(str(e))

    if window <= 0:
        raise ConfigurationError(
            f"Work end {schedule.work_end} must be after work start {schedule.work_start}"
        )

    effective = schedule.effective_minutes()
    if effective <= 0:
        raise ConfigurationError(
            f"Breaks of {window - effective} minutes leave no working time "
            f"between {schedule.work_start} and {schedule.work_end}"
        )

    return effective * 60


def residual_steps(difference_seconds: int, granularity: int = GRANULARITY_SECONDS) -> int:
    """
    Number of whole granularity steps needed to close a residual.

    Halves round up, the same as the per-entry rounding.

    Example:
        >>> residual_steps(-300, 600)
        1
    """
    return int(math.floor(abs(difference_seconds) / granularity + 0.5))


def distribute_residual(
    durations: list[int],
    order: Sequence[int],
    steps: int,
    step_value: int,
) -> int:
    """
    Move ``steps`` granularity steps onto ``durations`` in place.

    Entries are visited cyclically in ``order``. A step is only applied when
    the entry stays non-negative. The walk stops once all steps are placed or
    a full pass placed none.

    Args:
        durations: Rounded durations, modified in place
        order: Indices into ``durations`` in visiting order
        steps: Number of steps to place
        step_value: Signed seconds per step

    Returns:
        Number of steps that could not be placed
    """
    if not order:
        return steps

    while steps > 0:
        placed = 0
        for index in order:
            if steps == 0:
                break
            if durations[index] + step_value >= 0:
                durations[index] += step_value
                steps -= 1
                placed += 1
        if placed == 0:
            logger.debug("Residual walk exhausted with %d steps left", steps)
            break

    return steps


def compute_adjustment(
    entries: Iterable[Any],
    schedule: WorkSchedule,
    granularity: int = GRANULARITY_SECONDS,
    tolerance: float = TOLERANCE_HOURS,
) -> DayBalance:
    """
    Balance a day's completed entries against a work schedule.

    Args:
        entries: Completed entries of one day; each needs ``id`` and
            ``duration`` (seconds), as attributes or dict keys
        schedule: Target work schedule
        granularity: Rounding step in seconds
        tolerance: Residual in hours that counts as balanced

    Returns:
        DayBalance with one adjusted entry per input entry, in input order.
        An empty DayBalance when the schedule is incomplete or there are no
        entries.

    Raises:
        ConfigurationError: If the schedule has no positive working time
        DegenerateInputError: If a duration is missing or negative, or all
            durations are zero
    """
    entries = list(entries)
    if not schedule.is_complete or not entries:
        return DayBalance()

    target = target_seconds(schedule)
    effective_hours = target / 3600

    ids = []
    durations = []
    for entry in entries:
        duration = _field(entry, "duration")
        if duration is None or duration < 0:
            raise DegenerateInputError(
                f"Entry {_field(entry, 'id')} has no valid duration"
            )
        ids.append(str(_field(entry, "id")))
        durations.append(int(duration))

    total = sum(durations)
    if total == 0:
        raise DegenerateInputError("All entries of the day have zero duration")

    time_difference = effective_hours - total / 3600

    unrounded = [duration * target / total for duration in durations]
    rounded = [round_to_granularity(value, granularity) for value in unrounded]

    rounded_difference = effective_hours - sum(rounded) / 3600
    if abs(rounded_difference) >= tolerance:
        # Stable sort keeps input order among equal shares
        order = sorted(range(len(unrounded)), key=lambda i: unrounded[i], reverse=True)
        steps = residual_steps(target - sum(rounded), granularity)
        step_value = granularity if rounded_difference > 0 else -granularity

        distribute_residual(rounded, order, steps, step_value)
        rounded_difference = effective_hours - sum(rounded) / 3600

    adjusted = [
        AdjustedEntry(
            id=entry_id,
            original_duration=original,
            unrounded_duration=share,
            duration=duration,
        )
        for entry_id, original, share, duration in zip(ids, durations, unrounded, rounded)
    ]

    return DayBalance(
        time_difference_hours=time_difference,
        rounded_difference_hours=rounded_difference,
        target_hours=effective_hours,
        adjusted_entries=adjusted,
        requires_confirmation=abs(rounded_difference) > tolerance,
    )


def undo_all_for_day(entries: Iterable[Any]) -> list[UndoneEntry]:
    """
    Select the entries of a day whose correction has to be cleared.

    Only entries with a stored correction that differs from the recorded
    duration are selected, so running undo again selects nothing.
    """
    undone = []
    for entry in entries:
        corrected: Optional[int] = _field(entry, "corrected_duration")
        if corrected is not None and corrected != _field(entry, "duration"):
            undone.append(UndoneEntry(id=str(_field(entry, "id"))))
    return undone
