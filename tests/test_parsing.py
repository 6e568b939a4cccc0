from datetime import date, datetime

import pytest

from parsing import days_between, format_date, parse_date_string, to_date, years_between


class TestParseDateString:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1839-08-29", date(1839, 8, 29)),
            ("1839-08-29T00:00:00Z", date(1839, 8, 29)),
            ("25 NOV 1954", date(1954, 11, 25)),
            ("1698", date(1698, 1, 1)),
            ("ABOUT 1905", date(1905, 1, 1)),
            ("JAN 1905", date(1905, 1, 1)),
            ("(01-27-1920)", date(1920, 1, 27)),
            ("(05/15/1923)", date(1923, 5, 15)),
            ("(SEPT. 17,1910)", date(1910, 9, 17)),
            ("(May, 1837)", date(1837, 5, 1)),
            ("(1789?)", date(1789, 1, 1)),
            ("(About:1746-00-00)", date(1746, 1, 1)),
            ("(April 17, 1850)", date(1850, 4, 17)),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_date_string(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "sometime", "31 FEB 1900"])
    def test_unparseable(self, text):
        assert parse_date_string(text) is None


class TestToDate:
    def test_passthrough_and_datetime(self):
        assert to_date(date(2000, 1, 2)) == date(2000, 1, 2)
        assert to_date(datetime(2000, 1, 2, 13, 45)) == date(2000, 1, 2)

    def test_blank_is_none(self):
        assert to_date(None) is None
        assert to_date("  ") is None

    def test_bad_string_raises_value_error(self):
        with pytest.raises(ValueError):
            to_date("not a date")

    def test_other_types_raise_type_error(self):
        with pytest.raises(TypeError):
            to_date(1950)


def test_date_arithmetic():
    assert days_between(date(2000, 1, 1), date(2000, 1, 31)) == 30
    assert days_between(date(2000, 1, 31), date(2000, 1, 1)) == -30
    assert years_between(date(1950, 1, 1), date(1980, 1, 1)) == pytest.approx(30, abs=0.01)
    assert format_date(date(1901, 2, 3)) == "1901-02-03"
    assert format_date(None) is None
