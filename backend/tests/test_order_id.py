"""
Unit tests for the order identifier format.
"""

from datetime import date

import pytest

from freightbid.services.orders.order_id import (
    ParsedOrderId,
    date_key,
    format_order_id,
    is_valid_order_id,
    parse_order_id,
)


class TestFormatOrderId:
    """Tests for building order IDs."""

    def test_pads_sequence(self):
        assert format_order_id(date(2025, 5, 26), 1) == "RX250526-001"
        assert format_order_id(date(2025, 5, 26), 42) == "RX250526-042"
        assert format_order_id(date(2025, 12, 31), 999) == "RX251231-999"

    @pytest.mark.parametrize("sequence", [0, 1000, -1])
    def test_rejects_out_of_range_sequence(self, sequence):
        with pytest.raises(ValueError):
            format_order_id(date(2025, 5, 26), sequence)

    def test_ids_sort_chronologically(self):
        ids = [
            format_order_id(date(2025, 5, 26), 2),
            format_order_id(date(2025, 5, 25), 999),
            format_order_id(date(2025, 5, 26), 10),
            format_order_id(date(2026, 1, 1), 1),
        ]
        assert sorted(ids) == [
            "RX250525-999",
            "RX250526-002",
            "RX250526-010",
            "RX260101-001",
        ]

    def test_date_key(self):
        assert date_key(date(2025, 5, 26)) == "20250526"


class TestParseOrderId:
    """Tests for validating and parsing order IDs."""

    def test_parse(self):
        assert parse_order_id("RX250526-001") == ParsedOrderId(date=date(2025, 5, 26), sequence=1)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "RX250526-1",
            "RX250526001",
            "rx250526-001",
            "RX250526-000",
            "RX251301-001",
            "RX250230-001",
            "RX250526-001\n",
            " RX250526-001",
            "XX250526-001",
        ],
    )
    def test_invalid(self, value):
        assert parse_order_id(value) is None
        assert not is_valid_order_id(value)

    def test_valid(self):
        assert is_valid_order_id("RX240229-999")
