"""
Unit tests for tenor utilities.
"""

from datetime import date

import pytest

from quantrisk.curves import TenorParameterMetadata
from quantrisk.dates import DateUtils


class TestDateUtils:
    """Tests for tenor parsing and date arithmetic."""

    @pytest.mark.parametrize("tenor,expected", [
        ("3M", (3, "M")),
        ("10Y", (10, "Y")),
        ("2W", (2, "W")),
        ("1d", (1, "D")),
        (" 6m ", (6, "M")),
    ])
    def test_parse_tenor(self, tenor, expected):
        assert DateUtils.parse_tenor(tenor) == expected

    @pytest.mark.parametrize("tenor", ["", "Y", "3X", "1.5Y", "-1M"])
    def test_parse_tenor_invalid(self, tenor):
        with pytest.raises(ValueError):
            DateUtils.parse_tenor(tenor)

    def test_add_tenor(self):
        start = date(2023, 11, 15)
        assert DateUtils.add_tenor(start, "10D") == date(2023, 11, 25)
        assert DateUtils.add_tenor(start, "1W") == date(2023, 11, 22)
        assert DateUtils.add_tenor(start, "3M") == date(2024, 2, 15)
        assert DateUtils.add_tenor(start, "2Y") == date(2025, 11, 15)

    def test_add_tenor_month_end(self):
        """Test month arithmetic rolls back to the last day of a short month."""
        assert DateUtils.add_tenor(date(2024, 1, 31), "1M") == date(2024, 2, 29)
        assert DateUtils.add_tenor(date(2023, 1, 31), "1M") == date(2023, 2, 28)
        assert DateUtils.add_tenor(date(2024, 2, 29), "1Y") == date(2025, 2, 28)


class TestTenorMetadata:

    def test_invalid_tenor_rejected(self):
        with pytest.raises(ValueError):
            TenorParameterMetadata.of("ten years")
