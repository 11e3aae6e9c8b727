"""
Tests for phone number normalization.
"""

import logging

import pytest

from utils.phone import normalize_phone_number


class TestNormalizePhoneNumber:
    """Test the 10-digit normalization rules."""

    @pytest.mark.parametrize("raw, expected", [
        ("555-123-4567", "5551234567"),
        ("15551234567", "5551234567"),
        ("(555) 123-4567", "5551234567"),
        ("5551234567", "5551234567"),
        ("5551234567x", "5551234567"),
        ("+1 (555) 123-4567", "5551234567"),
    ])
    def test_valid_numbers(self, raw, expected):
        assert normalize_phone_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "123", "25551234567", "555-123-45678", None])
    def test_invalid_numbers(self, raw):
        assert normalize_phone_number(raw) is None

    def test_failure_is_reported(self, caplog):
        """The failing input is named in a warning rather than raised."""
        with caplog.at_level(logging.WARNING, logger="utils.phone"):
            assert normalize_phone_number("25551234567") is None

        assert "25551234567" in caplog.text
