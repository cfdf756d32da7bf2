"""Timer service - business logic for time tracking."""
from datetime import date, datetime
from typing import Optional
from bson import ObjectId

from timebalance.models.time_entry import TimeEntry, TimeEntryCreate, TimeEntryUpdate
from timebalance.utils.dates import local_day_bounds, to_naive_utc


class TimerService:
    """Service for handling time tracking operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_entries = db["time_entries"]

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to TimeEntry model.
        """
        return TimeEntry(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            project_number=doc.get("project_number"),
            description=doc.get("description", ""),
            start_time=doc["start_time"],
            end_time=doc.get("end_time"),
            duration=doc.get("duration"),
            corrected_duration=doc.get("corrected_duration"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    def _to_object_id(self, entry_id: str) -> ObjectId:
        """Parse an entry ID, raising ValueError for malformed IDs."""
        try:
            return ObjectId(entry_id)
        except Exception:
            raise ValueError("Invalid entry ID format")

    def _calculate_duration(self, start_time: datetime, end_time: datetime) -> int:
        """
        Calculate duration in seconds between start and end time.

        Args:
            start_time: Start time
            end_time: End time

        Returns:
            Duration in seconds, never negative

        Raises:
            ValueError: If end time is before start time
        """
        delta = to_naive_utc(end_time) - to_naive_utc(start_time)
        if delta.total_seconds() < 0:
            raise ValueError("End time must not be before start time")
        return int(delta.total_seconds())

    async def start_timer(
        self,
        user_id: str,
        project_number: Optional[str] = None,
        description: str = "",
        start_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Start a new timer.

        Args:
            user_id: User ID
            project_number: Optional project number
            description: Optional description
            start_time: Optional start time (defaults to now)

        Returns:
            Created time entry

        Raises:
            ValueError: If a timer is already running
        """
        # Check if timer is already running
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "end_time": None,
        })

        if running_timer:
            raise ValueError("Timer already running")

        now = datetime.utcnow()
        start_time = now if start_time is None else to_naive_utc(start_time)

        entry_doc = {
            "user_id": user_id,
            "project_number": project_number,
            "description": description,
            "start_time": start_time,
            "end_time": None,
            "duration": None,
            "corrected_duration": None,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        return self._doc_to_entry(entry_doc)

    async def stop_timer(
        self,
        user_id: str,
        end_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Stop the currently running timer.

        Args:
            user_id: User ID
            end_time: Optional end time (defaults to now)

        Returns:
            Updated time entry with end_time and duration

        Raises:
            ValueError: If no timer is running
        """
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "end_time": None,
        })

        if not running_timer:
            raise ValueError("No timer running")

        end_time = datetime.utcnow() if end_time is None else to_naive_utc(end_time)
        duration = self._calculate_duration(running_timer["start_time"], end_time)

        update_doc = {
            "end_time": end_time,
            "duration": duration,
            "updated_at": datetime.utcnow(),
        }

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": running_timer["_id"]},
            {"$set": update_doc},
            return_document=True,
        )

        return self._doc_to_entry(updated_doc)

    async def get_current_timer(
        self,
        user_id: str,
    ) -> Optional[TimeEntry]:
        """
        Get the currently running timer, if any.

        Args:
            user_id: User ID

        Returns:
            Current running time entry, or None
        """
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "end_time": None,
        })

        if not running_timer:
            return None

        return self._doc_to_entry(running_timer)

    async def get_entry(self, user_id: str, entry_id: str) -> TimeEntry:
        """
        Get a single time entry.

        Raises:
            ValueError: If the ID is malformed or the entry does not exist
        """
        doc = await self.time_entries.find_one({
            "_id": self._to_object_id(entry_id),
            "user_id": user_id,
        })

        if not doc:
            raise ValueError("Time entry not found")

        return self._doc_to_entry(doc)

    async def list_entries(
        self,
        user_id: str,
        project_number: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[TimeEntry]:
        """
        List time entries for a user with optional filtering.

        Args:
            user_id: User ID
            project_number: Optional project filter
            start_date: Optional start date filter
            end_date: Optional end date filter

        Returns:
            List of time entries, most recent first
        """
        query = {
            "user_id": user_id,
        }

        if project_number:
            query["project_number"] = project_number

        if start_date or end_date:
            query["start_time"] = {}
            if start_date:
                query["start_time"]["$gte"] = to_naive_utc(start_date)
            if end_date:
                query["start_time"]["$lte"] = to_naive_utc(end_date)

        cursor = self.time_entries.find(query).sort("start_time", -1)
        entry_docs = await cursor.to_list(length=None)

        return [self._doc_to_entry(doc) for doc in entry_docs]

    async def list_day_entries(
        self,
        user_id: str,
        day: date,
        tz_name: str,
    ) -> list[TimeEntry]:
        """
        List the completed entries that started on a local calendar day.

        Running entries (no end time) are left out.

        Args:
            user_id: User ID
            day: Local calendar date
            tz_name: IANA time zone the day is interpreted in

        Returns:
            Completed entries ordered by start time
        """
        day_start, day_end = local_day_bounds(day, tz_name)

        cursor = self.time_entries.find({
            "user_id": user_id,
            "start_time": {"$gte": day_start, "$lt": day_end},
            "end_time": {"$ne": None},
        }).sort("start_time", 1)
        entry_docs = await cursor.to_list(length=None)

        return [self._doc_to_entry(doc) for doc in entry_docs]

    async def create_entry(
        self,
        user_id: str,
        entry_create: TimeEntryCreate,
    ) -> TimeEntry:
        """
        Create a manual time entry.

        Args:
            user_id: User ID
            entry_create: Time entry creation data

        Returns:
            Created time entry

        Raises:
            ValueError: If the end time lies before the start time
        """
        # Calculate duration if not provided
        duration = entry_create.duration
        if duration is None and entry_create.end_time:
            duration = self._calculate_duration(
                entry_create.start_time,
                entry_create.end_time,
            )

        now = datetime.utcnow()
        entry_doc = {
            "user_id": user_id,
            "project_number": entry_create.project_number,
            "description": entry_create.description,
            "start_time": to_naive_utc(entry_create.start_time),
            "end_time": (
                to_naive_utc(entry_create.end_time) if entry_create.end_time else None
            ),
            "duration": duration,
            "corrected_duration": None,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        return self._doc_to_entry(entry_doc)

    async def update_entry(
        self,
        user_id: str,
        entry_id: str,
        entry_update: TimeEntryUpdate,
    ) -> TimeEntry:
        """
        Update a time entry.

        A stored correction is cleared unless the update sets
        ``corrected_duration`` explicitly.

        Args:
            user_id: User ID
            entry_id: Time entry ID
            entry_update: Update data

        Returns:
            Updated time entry

        Raises:
            ValueError: If entry not found
        """
        object_id = self._to_object_id(entry_id)

        existing = await self.time_entries.find_one({
            "_id": object_id,
            "user_id": user_id,
        })

        if not existing:
            raise ValueError("Time entry not found")

        update_doc = {
            "updated_at": datetime.utcnow(),
            "corrected_duration": entry_update.corrected_duration,
        }

        if entry_update.project_number is not None:
            update_doc["project_number"] = entry_update.project_number
        if entry_update.description is not None:
            update_doc["description"] = entry_update.description
        if entry_update.end_time is not None:
            update_doc["end_time"] = to_naive_utc(entry_update.end_time)
            if entry_update.duration is None:
                update_doc["duration"] = self._calculate_duration(
                    existing["start_time"], entry_update.end_time
                )
        if entry_update.duration is not None:
            update_doc["duration"] = entry_update.duration

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": object_id, "user_id": user_id},
            {"$set": update_doc},
            return_document=True,
        )

        return self._doc_to_entry(updated_doc)

    async def clear_corrections(
        self,
        user_id: str,
        entry_ids: list[str],
    ) -> int:
        """
        Clear the stored correction of several entries in one statement.

        Args:
            user_id: User ID
            entry_ids: Time entry IDs

        Returns:
            Number of modified entries
        """
        if not entry_ids:
            return 0

        object_ids = [self._to_object_id(entry_id) for entry_id in entry_ids]
        result = await self.time_entries.update_many(
            {"_id": {"$in": object_ids}, "user_id": user_id},
            {"$set": {"corrected_duration": None, "updated_at": datetime.utcnow()}},
        )

        return result.modified_count

    async def delete_entry(
        self,
        user_id: str,
        entry_id: str,
    ) -> dict:
        """
        Delete a time entry.

        Args:
            user_id: User ID
            entry_id: Time entry ID

        Returns:
            Dictionary with deleted_count

        Raises:
            ValueError: If entry not found
        """
        object_id = self._to_object_id(entry_id)

        existing = await self.time_entries.find_one({
            "_id": object_id,
            "user_id": user_id,
        })

        if not existing:
            raise ValueError("Time entry not found")

        # Hard delete for time entries
        result = await self.time_entries.delete_one({
            "_id": object_id,
            "user_id": user_id,
        })

        return {"deleted_count": result.deleted_count}
