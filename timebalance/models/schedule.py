"""Work schedule model used as the day balancing target."""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from timebalance.utils.dates import parse_time_of_day


class WorkSchedule(BaseModel):
    """Target working day: start and end time of day plus breaks.

    Times are local ``HH:MM`` strings. A schedule without start or end is
    allowed; balancing treats it as "nothing to do".
    """

    work_start: Optional[str] = None
    work_end: Optional[str] = None
    lunch_break_minutes: int = Field(default=0, ge=0)
    other_break_minutes: int = Field(default=0, ge=0)

    @field_validator("work_start", "work_end")
    @classmethod
    def validate_time_of_day(cls, value: Optional[str]) -> Optional[str]:
        """Accept empty values, otherwise require a valid 24h ``HH:MM``."""
        if value is None or value == "":
            return None
        parse_time_of_day(value)
        return value

    @property
    def is_complete(self) -> bool:
        """Whether both work start and work end are set."""
        return bool(self.work_start) and bool(self.work_end)

    def window_minutes(self) -> int:
        """Minutes between work start and work end, breaks not deducted."""
        return parse_time_of_day(self.work_end) - parse_time_of_day(self.work_start)

    def effective_minutes(self) -> int:
        """Working minutes after deducting lunch and other breaks."""
        return (
            self.window_minutes()
            - self.lunch_break_minutes
            - self.other_break_minutes
        )

    def effective_hours(self) -> float:
        """Target worked hours for the day."""
        return self.effective_minutes() / 60
