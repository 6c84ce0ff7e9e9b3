"""Unit tests for bugvet.analysis.timelayout module."""

import pytest

from bugvet.analysis.timelayout import (
    Std,
    TimeParseError,
    days_in,
    is_leap,
    parse,
    tokenize,
    validate_layout,
)


class TestTokenize:
    """Tests for layout tokenization."""

    def test_date(self):
        """Test splitting a date layout into elements."""
        stds = [chunk.std for chunk in tokenize("2006-01-02")]
        assert stds == [Std.LONG_YEAR, Std.ZERO_MONTH, Std.ZERO_DAY, None]

    def test_literal_prefixes(self):
        """Test that literal text is kept as chunk prefixes."""
        chunks = tokenize("at 15:04")
        assert chunks[0].prefix == "at "
        assert chunks[0].std == Std.HOUR
        assert chunks[1].prefix == ":"
        assert chunks[1].std == Std.ZERO_MINUTE

    def test_plain_text(self):
        """Test a layout without elements."""
        (chunk,) = tokenize("hello")
        assert chunk.prefix == "hello"
        assert chunk.std is None


class TestParse:
    """Tests for parsing values against layouts."""

    def test_parse(self):
        """Test a full timestamp."""
        t = parse("2006-01-02 15:04:05", "2021-03-04 05:06:07")
        assert (t.year, t.month, t.day) == (2021, 3, 4)
        assert (t.hour, t.minute, t.second) == (5, 6, 7)

    def test_month_names(self):
        """Test month and weekday names."""
        t = parse("Mon Jan 2 2006", "Thu Feb 4 2021")
        assert (t.year, t.month, t.day) == (2021, 2, 4)

    def test_cannot_parse(self):
        """Test the mismatch error text."""
        with pytest.raises(TimeParseError) as exc_info:
            parse("2006-01-02", "2021/03/04")
        assert str(exc_info.value) == (
            'parsing time "2021/03/04" as "2006-01-02": cannot parse "/03/04" as "-"'
        )

    def test_range_error(self):
        """Test out-of-range values."""
        with pytest.raises(TimeParseError, match="month out of range"):
            parse("2006-01-02", "2021-13-04")

    def test_day_out_of_range(self):
        """Test day validation against the month length."""
        with pytest.raises(TimeParseError, match="day out of range"):
            parse("2006-01-02", "2021-02-30")

    def test_extra_text(self):
        """Test trailing input."""
        with pytest.raises(TimeParseError, match="extra text"):
            parse("2006", "2021 and more")


class TestCalendar:
    """Tests for calendar helpers."""

    @pytest.mark.parametrize(
        "year,leap", [(2000, True), (1900, False), (2024, True), (2023, False)]
    )
    def test_is_leap(self, year, leap):
        """Test Gregorian leap years."""
        assert is_leap(year) is leap

    def test_days_in(self):
        """Test month lengths."""
        assert days_in(2, 2024) == 29
        assert days_in(2, 2023) == 28
        assert days_in(12, 2023) == 31


class TestValidateLayout:
    """Tests for layout self-validation."""

    @pytest.mark.parametrize(
        "layout",
        [
            "2006-01-02",
            "2006-01-02T15:04:05Z07:00",
            "Mon, 02 Jan 2006 15:04:05 MST",
            "Jan _2 15:04:05.000000",
            "3:04PM",
            "20060102150405",
            "2006-002",
        ],
    )
    def test_valid(self, layout):
        """Test layouts that parse their own text."""
        validate_layout(layout)

    def test_month_out_of_range(self):
        """Test a layout with a mistyped month element."""
        with pytest.raises(TimeParseError) as exc_info:
            validate_layout("2006-13-02")
        assert str(exc_info.value) == 'parsing time "2006-13-02": month out of range'

    def test_digits_read_as_month(self):
        """Test a layout whose digits read as an out-of-range month."""
        with pytest.raises(TimeParseError, match="out of range"):
            validate_layout("15:16")
