"""
RequiredFieldValidator - ensures a canonical field is mapped and non-blank.
"""

from src.core.schema import CanonicalRow


class ValidationError(Exception):
    """Raised when a row fails a validation rule."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class RequiredFieldValidator:
    """
    Fails if:
    - The field was not mapped from any source column
    - The value is None
    - The value is blank after trimming
    """

    rule_type = "required_field"

    def __init__(self, field_name: str):
        self.field_name = field_name

    def _fail(self, message: str) -> ValidationError:
        return ValidationError(rule_name=self.rule_type, field_name=self.field_name, message=message)

    def validate(self, row: CanonicalRow) -> None:
        if self.field_name not in row:
            raise self._fail("Field is missing from row")

        value = row[self.field_name]
        if value is None:
            raise self._fail("Field value is null")
        if str(value).strip() == "":
            raise self._fail("Field value is empty")

    def __repr__(self) -> str:
        return f"RequiredFieldValidator(field={self.field_name})"
