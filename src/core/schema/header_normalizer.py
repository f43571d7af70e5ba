"""
Header normalization: map arbitrary column spellings onto canonical fields.

Labels are case-folded and stripped of whitespace and underscores, then
looked up in a fixed alias table. Unknown columns are dropped.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from src.core.models.record import MAX_FIELD_LENGTH

# Canonical field name -> string value, produced once per decoded row
CanonicalRow = dict[str, str]

HEADER_ALIASES: dict[str, str] = {
    "ticketrefid": "natural_id",
    "ticketref": "natural_id",
    "ticketid": "natural_id",
    "naturalid": "natural_id",
    "description": "description",
    "remark": "remark",
    "remarks": "remark",
    "category": "category",
    "subcategory": "sub_category",
    "sub-category": "sub_category",
    "status": "status",
}

_STRIP_RE = re.compile(r"[\s_]+")


def normalize_label(label: Any) -> str:
    """'Ticket Ref_ID ' -> 'ticketrefid'."""
    if label is None:
        return ""
    return _STRIP_RE.sub("", str(label).casefold())


def clean_value(value: Any, max_length: int = MAX_FIELD_LENGTH) -> str:
    if value is None:
        return ""
    return str(value).strip()[:max_length]


class HeaderMap:
    """
    Canonical field -> source column index for one file or worksheet.

    Built once from the header row and applied to every data row after it.
    """

    def __init__(self, columns: Mapping[str, int], labels: Sequence[str] = ()):
        self.columns = dict(columns)
        self.labels = tuple(labels)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.columns)

    def __contains__(self, field: str) -> bool:
        return field in self.columns

    def __len__(self) -> int:
        return len(self.columns)

    def apply(self, values: Sequence[Any], max_length: int = MAX_FIELD_LENGTH) -> CanonicalRow:
        """Pick, trim and truncate the mapped cells of one data row."""
        row: CanonicalRow = {}
        for field, index in self.columns.items():
            value = values[index] if index < len(values) else None
            row[field] = clean_value(value, max_length)
        return row

    def __repr__(self) -> str:
        return f"HeaderMap({self.columns})"


class HeaderNormalizer:
    """Builds HeaderMaps against an alias table."""

    def __init__(self, aliases: Mapping[str, str] | None = None):
        self.aliases = dict(aliases if aliases is not None else HEADER_ALIASES)

    def canonical_field(self, label: Any) -> str | None:
        return self.aliases.get(normalize_label(label))

    def build(self, labels: Iterable[Any]) -> HeaderMap:
        """
        Map a header row.

        When two columns resolve to the same canonical field the leftmost
        one wins, including on rows where its cell is blank.
        """
        labels = [clean_value(label) for label in labels]
        columns: dict[str, int] = {}
        for index, label in enumerate(labels):
            field = self.canonical_field(label)
            if field is not None and field not in columns:
                columns[field] = index
        return HeaderMap(columns, labels)
