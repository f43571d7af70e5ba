"""
Record validation: turn canonical rows into RecordInputs or drop them.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.core.models import RecordInput
from src.core.schema import CanonicalRow
from src.observability.logger import get_logger

from .required_field_validator import RequiredFieldValidator, ValidationError

logger = get_logger(__name__)


@dataclass
class ChunkValidation:
    """Valid records of one chunk plus what was dropped and why."""

    records: list[RecordInput] = field(default_factory=list)
    skipped: int = 0
    reasons: Counter = field(default_factory=Counter)


class RecordValidator:
    """
    Drops rows without a natural identifier and shapes the rest.

    Rows are checked independently; output order follows input order.
    With ``require_description`` a blank description also drops the row.
    """

    def __init__(self, require_description: bool = False):
        self.require_description = require_description
        self.validators: list[RequiredFieldValidator] = [RequiredFieldValidator("natural_id")]
        if require_description:
            self.validators.append(RequiredFieldValidator("description"))

    def check(self, row: CanonicalRow) -> None:
        """Raise ValidationError on the first failing rule."""
        for validator in self.validators:
            validator.validate(row)

    def shape(self, row: CanonicalRow) -> RecordInput:
        return RecordInput(
            natural_id=row["natural_id"],
            description=row.get("description", ""),
            remark=row.get("remark", ""),
            category=row.get("category", ""),
            sub_category=row.get("sub_category", ""),
            status=row.get("status"),
        )

    def validate_row(self, row: CanonicalRow) -> RecordInput | None:
        try:
            self.check(row)
        except ValidationError:
            return None
        return self.shape(row)

    def validate_chunk(self, rows: Iterable[CanonicalRow]) -> ChunkValidation:
        result = ChunkValidation()
        for row in rows:
            try:
                self.check(row)
            except ValidationError as e:
                result.skipped += 1
                result.reasons[f"{e.rule_name}:{e.field_name}"] += 1
                continue
            result.records.append(self.shape(row))

        if result.skipped:
            logger.debug(
                "Dropped rows failing validation",
                extra={"skipped": result.skipped, "reasons": dict(result.reasons)}
            )
        return result
