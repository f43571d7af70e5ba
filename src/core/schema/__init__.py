"""
Header normalization onto the canonical work-item fields.
"""

from .header_normalizer import (
    HEADER_ALIASES,
    CanonicalRow,
    HeaderMap,
    HeaderNormalizer,
    normalize_label,
)

__all__ = [
    "HEADER_ALIASES",
    "CanonicalRow",
    "HeaderMap",
    "HeaderNormalizer",
    "normalize_label",
]
