"""
ExportFilter model: the query a fetch or export runs against the store.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, field_validator

STATUS_ALL = "all"


class ExportFilter(BaseModel):
    """
    Exact-match filters plus an inclusive created_at day range.

    Empty strings mean "no filter". ``status`` equal to ``"all"`` (any case)
    is the no-filter sentinel. The date range only applies when both
    ``start_date`` and ``end_date`` are given.
    """

    natural_id: str | None = None
    category: str | None = None
    sub_category: str | None = None
    description: str | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("natural_id", mode="before")
    @classmethod
    def strip_natural_id(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        return v

    def status_filter(self) -> str | None:
        if not self.status or self.status.strip().lower() == STATUS_ALL:
            return None
        return self.status

    def created_at_range(self) -> tuple[datetime, datetime] | None:
        """Start of start_date through the last millisecond of end_date."""
        if self.start_date is None or self.end_date is None:
            return None
        start = datetime.combine(self.start_date, time.min)
        end = datetime.combine(self.end_date, time(23, 59, 59, 999000))
        return start, end

    def equality_filters(self) -> dict[str, str]:
        """Column -> value for every exact-match filter in effect."""
        filters = {
            "natural_id": self.natural_id,
            "category": self.category,
            "sub_category": self.sub_category,
            "description": self.description,
            "status": self.status_filter(),
        }
        return {column: value for column, value in filters.items() if value}

    def describe(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, mode="json")
