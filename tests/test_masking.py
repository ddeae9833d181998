"""Tests for log masking helpers."""

import pytest

from intake.utils.masking import mask_email, mask_phone


class TestMaskEmail:
    """Tests for mask_email."""

    def test_standard_email(self):
        """Test masking a normal address."""
        assert mask_email("jane@example.com") == "j***@e***.com"

    def test_multi_part_domain(self):
        """Test the domain suffix is kept."""
        assert mask_email("jane@mail.example.co.uk") == "j***@m***.example.co.uk"

    def test_trims_form_input(self):
        """Test surrounding whitespace from the form is ignored."""
        assert mask_email("  jane.doe@portlandvet.com ") == "j***@p***.com"

    def test_host_without_suffix(self):
        """Test a dotless host is hidden entirely."""
        assert mask_email("jane@localhost") == "j***@***"

    @pytest.mark.parametrize("value", ["", "not-an-email", "a@b@c"])
    def test_invalid(self, value):
        """Test invalid input is fully masked."""
        assert mask_email(value) == "***"


class TestMaskPhone:
    """Tests for mask_phone."""

    def test_keeps_last_four(self):
        """Test the last four digits stay visible."""
        assert mask_phone("207-555-1234") == "***1234"

    def test_ignores_separators(self):
        """Test punctuation and spaces are not counted as digits."""
        assert mask_phone("(207) 555-12 34") == "***1234"

    def test_international(self):
        """Test the plus sign is kept."""
        assert mask_phone("+12075551234") == "+***1234"

    def test_short(self):
        """Test short values are fully masked."""
        assert mask_phone("12") == "***"
