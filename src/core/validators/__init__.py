"""
Row validators.

Provides the required-field rule and the record validator that shapes
canonical rows into upsert inputs.
"""

from .record_validator import ChunkValidation, RecordValidator
from .required_field_validator import RequiredFieldValidator, ValidationError

__all__ = [
    "ValidationError",
    "RequiredFieldValidator",
    "RecordValidator",
    "ChunkValidation",
]
