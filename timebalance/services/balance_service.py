"""Balance service - apply and undo day balancing for stored entries."""
import asyncio
import logging
import weakref
from datetime import date, datetime
from typing import Optional

from bson import ObjectId
from pymongo import UpdateOne
from pymongo.errors import PyMongoError

from timebalance.config import settings
from timebalance.models.balance import DayBalance, DaySummary, UndoneEntry
from timebalance.models.schedule import WorkSchedule
from timebalance.models.time_entry import TimeEntry
from timebalance.services.day_balancer import (
    ConfirmationRequiredError,
    compute_adjustment,
    undo_all_for_day,
)
from timebalance.services.timer_service import TimerService

logger = logging.getLogger(__name__)

# One lock per (user, day) so concurrent apply/undo calls cannot interleave.
# Entries disappear once no caller holds or waits on the lock.
_day_locks: "weakref.WeakValueDictionary[tuple[str, date], asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


def day_lock(user_id: str, day: date) -> asyncio.Lock:
    """Get the lock serializing balance writes for one user and day."""
    key = (user_id, day)
    lock = _day_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _day_locks[key] = lock
    return lock


class BalanceService:
    """Service for balancing a day's time entries against a work schedule."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_entries = db["time_entries"]
        self.timer_service = TimerService(db)

    def _compute(self, entries: list[TimeEntry], schedule: WorkSchedule) -> DayBalance:
        """Balance entries from their recorded durations, ignoring corrections."""
        return compute_adjustment(
            entries,
            schedule,
            granularity=settings.balance_granularity_seconds,
            tolerance=settings.balance_tolerance_hours,
        )

    async def day_summary(
        self,
        user_id: str,
        day: date,
        tz_name: Optional[str] = None,
    ) -> DaySummary:
        """
        Summarize a user's completed entries for one local day.

        Args:
            user_id: User ID
            day: Local calendar date
            tz_name: IANA time zone (defaults to the configured zone)

        Returns:
            DaySummary with recorded and effective totals in seconds
        """
        entries = await self.timer_service.list_day_entries(
            user_id, day, tz_name or settings.default_timezone
        )

        return DaySummary(
            day=day,
            entries=entries,
            total_duration=sum(entry.duration or 0 for entry in entries),
            total_effective_duration=sum(entry.effective_duration for entry in entries),
            has_corrections=any(entry.has_correction for entry in entries),
        )

    async def preview(
        self,
        user_id: str,
        day: date,
        schedule: WorkSchedule,
        tz_name: Optional[str] = None,
    ) -> DayBalance:
        """
        Compute the balance for a day without storing anything.

        Raises:
            BalancingError: If the schedule or the entries cannot be balanced
        """
        entries = await self.timer_service.list_day_entries(
            user_id, day, tz_name or settings.default_timezone
        )
        return self._compute(entries, schedule)

    async def apply(
        self,
        user_id: str,
        day: date,
        schedule: WorkSchedule,
        tz_name: Optional[str] = None,
        confirm: bool = False,
    ) -> DayBalance:
        """
        Balance a day and store the corrected durations.

        All corrections are written in one ordered bulk write. If the write
        fails part way, the corrections stored before the call are put back.

        Args:
            user_id: User ID
            day: Local calendar date
            schedule: Target work schedule
            tz_name: IANA time zone (defaults to the configured zone)
            confirm: Accept a residual left after rounding

        Returns:
            The applied DayBalance

        Raises:
            ConfirmationRequiredError: If a residual remains and confirm is False
            BalancingError: If the schedule or the entries cannot be balanced
            RuntimeError: If the corrections could not be stored
        """
        async with day_lock(user_id, day):
            entries = await self.timer_service.list_day_entries(
                user_id, day, tz_name or settings.default_timezone
            )
            balance = self._compute(entries, schedule)

            if not balance.adjusted_entries:
                return balance

            if balance.requires_confirmation and not confirm:
                raise ConfirmationRequiredError(balance.rounded_difference_hours)

            now = datetime.utcnow()
            operations = [
                UpdateOne(
                    {"_id": ObjectId(adjusted.id), "user_id": user_id},
                    {"$set": {"corrected_duration": adjusted.duration, "updated_at": now}},
                )
                for adjusted in balance.adjusted_entries
            ]

            try:
                await self.time_entries.bulk_write(operations, ordered=True)
            except PyMongoError as e:
                logger.warning(
                    "Balancing %s for user %s failed, restoring previous corrections",
                    day,
                    user_id,
                )
                await self._restore(user_id, entries)
                raise RuntimeError("Failed to store corrected durations") from e

            logger.info(
                "Balanced %d entries on %s for user %s (residual %.2fh)",
                len(operations),
                day,
                user_id,
                balance.rounded_difference_hours,
            )
            return balance

    async def _restore(self, user_id: str, entries: list[TimeEntry]) -> None:
        """Write back the corrections entries had before a failed apply."""
        operations = [
            UpdateOne(
                {"_id": ObjectId(entry.id), "user_id": user_id},
                {"$set": {"corrected_duration": entry.corrected_duration}},
            )
            for entry in entries
        ]
        try:
            await self.time_entries.bulk_write(operations, ordered=False)
        except PyMongoError:
            logger.exception(
                "Restoring corrections for user %s failed, day left partially balanced",
                user_id,
            )

    async def undo_day(
        self,
        user_id: str,
        day: date,
        tz_name: Optional[str] = None,
    ) -> list[UndoneEntry]:
        """
        Clear all corrections of a day in one statement.

        Running it again finds nothing left to clear.

        Returns:
            The entries whose correction was cleared
        """
        async with day_lock(user_id, day):
            entries = await self.timer_service.list_day_entries(
                user_id, day, tz_name or settings.default_timezone
            )
            undone = undo_all_for_day(entries)

            if undone:
                await self.timer_service.clear_corrections(
                    user_id, [entry.id for entry in undone]
                )
                logger.info(
                    "Cleared %d corrections on %s for user %s",
                    len(undone),
                    day,
                    user_id,
                )

            return undone

    async def undo_entry(self, user_id: str, entry_id: str) -> TimeEntry:
        """
        Clear the correction of a single entry.

        Raises:
            ValueError: If the entry does not exist
        """
        await self.timer_service.get_entry(user_id, entry_id)
        await self.timer_service.clear_corrections(user_id, [entry_id])
        return await self.timer_service.get_entry(user_id, entry_id)
