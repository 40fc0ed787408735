"""Schema for tracked goals and their optional timeline."""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

SHORT_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# How far ahead the timeline may reach
YEAR_HORIZON = 20


class DateRange(BaseModel):
    """Month-granular timeline attached to a goal."""

    start_month: int
    start_year: int
    end_month: int
    end_year: int

    def is_valid(self, current_year: int) -> bool:
        """Check month bounds, year horizon and start <= end ordering."""
        for month in (self.start_month, self.end_month):
            if not 1 <= month <= 12:
                return False
        for year in (self.start_year, self.end_year):
            if not current_year <= year <= current_year + YEAR_HORIZON:
                return False
        return (self.end_year, self.end_month) >= (self.start_year, self.start_month)


class Goal(BaseModel):
    """A user-defined ambition plus its derived list of action steps."""

    id: UUID = Field(default_factory=uuid4)
    title: str
    steps: list[str] = Field(default_factory=list)
    is_loading: bool = False
    start_month: Optional[int] = None
    start_year: Optional[int] = None
    end_month: Optional[int] = None
    end_year: Optional[int] = None

    @classmethod
    def placeholder(cls, title: str, date_range: Optional[DateRange] = None) -> "Goal":
        """Create a loading goal with no steps yet."""
        fields = date_range.model_dump() if date_range else {}
        return cls(title=title, steps=[], is_loading=True, **fields)

    @property
    def date_range(self) -> Optional[DateRange]:
        if None in (self.start_month, self.start_year, self.end_month, self.end_year):
            return None
        return DateRange(
            start_month=self.start_month,
            start_year=self.start_year,
            end_month=self.end_month,
            end_year=self.end_year,
        )

    @property
    def date_range_string(self) -> str:
        """Render the timeline as e.g. 'Oct 2026 - Mar 2027', or '' if unknown."""
        date_range = self.date_range
        if date_range is None:
            return ""
        if not (1 <= date_range.start_month <= 12 and 1 <= date_range.end_month <= 12):
            return ""
        start = SHORT_MONTH_NAMES[date_range.start_month - 1]
        end = SHORT_MONTH_NAMES[date_range.end_month - 1]
        return f"{start} {date_range.start_year} - {end} {date_range.end_year}"

    @property
    def status_line(self) -> str:
        if self.is_loading:
            return "Breaking it down..."
        return f"{len(self.steps)} steps"


def validate_new_goal(
    title: str,
    date_range: Optional[DateRange] = None,
    today: Optional[date] = None,
) -> str:
    """
    Validate user input for a new goal before it is handed to the pipeline.

    Args:
        title: Raw goal title as typed by the user
        date_range: Optional timeline
        today: Reference date (defaults to today)

    Returns:
        The trimmed title

    Raises:
        ValueError: If the title is blank or the timeline is invalid
    """
    trimmed = title.strip()
    if not trimmed:
        raise ValueError("Goal title cannot be empty")

    if date_range is not None:
        current_year = (today or date.today()).year
        if not date_range.is_valid(current_year):
            raise ValueError(
                "Timeline is invalid: months must be 1-12, years between "
                f"{current_year} and {current_year + YEAR_HORIZON}, and the end "
                "must not come before the start"
            )

    return trimmed
