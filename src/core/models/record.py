"""
Work-item record models.

RecordInput is the shaped, validated row handed to the store; Record is what
the store hands back (RecordInput plus store-managed timestamps).
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

MAX_FIELD_LENGTH = 16000

TEXT_FIELDS = ("description", "remark", "category", "sub_category")

# (export column label, model attribute); labels re-ingest through the alias table
EXPORT_COLUMNS = (
    ("ticketRefId", "natural_id"),
    ("description", "description"),
    ("remark", "remark"),
    ("category", "category"),
    ("subCategory", "sub_category"),
    ("status", "status"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


class TicketStatus(str, Enum):
    """Workflow status of a work item."""

    PROCESSING = "Processing"
    RAISED = "Raised"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"

    @classmethod
    def coerce(cls, value: Any) -> "TicketStatus":
        """Case-insensitive match; anything unrecognized becomes RAISED."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().casefold()
        for status in cls:
            if status.value.casefold() == text:
                return status
        return cls.RAISED


def truncate_text(value: Any, max_length: int = MAX_FIELD_LENGTH) -> str:
    if value is None:
        return ""
    return str(value)[:max_length]


class RecordInput(BaseModel):
    """
    A validated row ready for upsert.

    Attributes:
        natural_id: External ticket reference (unique upsert key)
        description: Free text, truncated to MAX_FIELD_LENGTH
        remark: Free text, truncated to MAX_FIELD_LENGTH
        category: Free text, truncated to MAX_FIELD_LENGTH
        sub_category: Free text, truncated to MAX_FIELD_LENGTH
        status: One of TicketStatus, RAISED when absent or unrecognized
    """

    natural_id: str = Field(..., min_length=1)
    description: str = ""
    remark: str = ""
    category: str = ""
    sub_category: str = ""
    status: TicketStatus = TicketStatus.RAISED

    @field_validator("natural_id", mode="before")
    @classmethod
    def strip_natural_id(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def cap_text(cls, v):
        return truncate_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return TicketStatus.coerce(v)

    def to_db_params(self) -> dict[str, str]:
        """Named parameters for the upsert statement."""
        return {
            "natural_id": self.natural_id,
            "description": self.description,
            "remark": self.remark,
            "category": self.category,
            "sub_category": self.sub_category,
            "status": self.status.value,
        }

    class Config:
        json_schema_extra = {
            "example": {
                "natural_id": "T-100234",
                "description": "Printer on floor 3 offline",
                "remark": "",
                "category": "Hardware",
                "sub_category": "Printer",
                "status": "Raised",
            }
        }


class Record(RecordInput):
    """A persisted work item, as returned by store queries."""

    created_at: datetime | None = None
    updated_at: datetime | None = None

    def export_row(self) -> list[str]:
        """Values in EXPORT_COLUMNS order, timestamps as ISO-8601 text."""
        values = []
        for _, attr in EXPORT_COLUMNS:
            value = getattr(self, attr)
            if isinstance(value, TicketStatus):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            values.append("" if value is None else value)
        return values
