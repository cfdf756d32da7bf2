"""Time entry model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TimeEntryBase(BaseModel):
    """Base time entry fields.

    Durations are whole seconds. ``corrected_duration`` is only ever written
    by day balancing and is cleared again by undo; ``duration`` stays as
    recorded.
    """

    project_number: Optional[str] = None
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    corrected_duration: Optional[int] = Field(default=None, ge=0)


class TimeEntryCreate(BaseModel):
    """Time entry creation model."""

    project_number: Optional[str] = None
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)


class TimeEntryUpdate(BaseModel):
    """Time entry update model.

    Leaving ``corrected_duration`` out of an update clears any stored
    correction, since an edited entry no longer matches its balancing.
    """

    project_number: Optional[str] = None
    description: Optional[str] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    corrected_duration: Optional[int] = Field(default=None, ge=0)


class TimeEntry(TimeEntryBase):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}

    @property
    def is_completed(self) -> bool:
        """Whether the entry has been stopped."""
        return self.end_time is not None

    @property
    def has_correction(self) -> bool:
        """Whether a correction differing from the recorded duration is stored."""
        return (
            self.corrected_duration is not None
            and self.corrected_duration != self.duration
        )

    @property
    def effective_duration(self) -> int:
        """Duration reporting and export should use, in seconds."""
        if self.corrected_duration is not None:
            return self.corrected_duration
        return self.duration or 0
