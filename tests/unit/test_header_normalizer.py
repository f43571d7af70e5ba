"""
Unit tests for header normalization.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.core.models import MAX_FIELD_LENGTH
from src.core.schema import HEADER_ALIASES, HeaderNormalizer, normalize_label


class TestNormalizeLabel:

    @pytest.mark.parametrize("label, expected", [
        ("Ticket Ref ID", "ticketrefid"),
        ("ticket_ref_id", "ticketrefid"),
        ("  TICKETREFID  ", "ticketrefid"),
        ("Sub Category", "subcategory"),
        ("Sub-Category", "sub-category"),
        ("Remarks", "remarks"),
        (None, ""),
    ])
    def test_normalize_label(self, label, expected):
        assert normalize_label(label) == expected

    @given(st.text(max_size=30))
    def test_property_idempotent(self, label):
        """Property test: normalizing twice changes nothing"""
        once = normalize_label(label)
        assert normalize_label(once) == once


class TestHeaderNormalizer:

    def test_alias_example(self):
        header_map = HeaderNormalizer().build(
            ["Ticket Ref ID", "Remarks", "Sub Category", "Status", "Colour"]
        )

        assert header_map.columns == {
            "natural_id": 0,
            "remark": 1,
            "sub_category": 2,
            "status": 3,
        }

    @pytest.mark.parametrize("label", ["ticketRefId", "Ticket Ref", "TicketID", "natural_id"])
    def test_identifier_aliases(self, label):
        assert HeaderNormalizer().canonical_field(label) == "natural_id"

    def test_unknown_columns_dropped(self):
        header_map = HeaderNormalizer().build(["Owner", "Priority"])

        assert len(header_map) == 0
        assert "natural_id" not in header_map
        assert header_map.apply(["alice", "high"]) == {}

    def test_leftmost_duplicate_wins(self):
        header_map = HeaderNormalizer().build(["Remark", "Ticket ID", "Remarks"])

        assert header_map.columns["remark"] == 0
        assert header_map.apply(["first", "T-1", "second"])["remark"] == "first"

    def test_blank_leftmost_duplicate_does_not_fall_back(self):
        header_map = HeaderNormalizer().build(["Remark", "Ticket ID", "Remarks"])

        assert header_map.apply(["  ", "T-1", "second"])["remark"] == ""

    def test_apply_trims_and_fills_short_rows(self):
        header_map = HeaderNormalizer().build(["Ticket Ref ID", "Description", "Category"])

        row = header_map.apply(["  T-9 ", " printer jam "])

        assert row == {"natural_id": "T-9", "description": "printer jam", "category": ""}

    def test_apply_truncates_long_values(self):
        header_map = HeaderNormalizer().build(["Ticket Ref ID", "Description"])

        row = header_map.apply(["T-1", "x" * (MAX_FIELD_LENGTH + 50)])

        assert len(row["description"]) == MAX_FIELD_LENGTH

    def test_custom_aliases(self):
        normalizer = HeaderNormalizer({"ref": "natural_id"})

        assert normalizer.canonical_field("REF") == "natural_id"
        assert normalizer.canonical_field("Ticket Ref ID") is None

    @given(st.sampled_from(sorted(HEADER_ALIASES)), st.text(alphabet=" _", max_size=4))
    def test_property_separators_ignored(self, alias, padding):
        """Property test: whitespace and underscores never change the mapping"""
        label = padding + alias.upper() + padding
        assert HeaderNormalizer().canonical_field(label) == HEADER_ALIASES[alias]
