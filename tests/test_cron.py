from datetime import datetime, timedelta, timezone

import pytest

from orcha.cron import CronExpr, CronParseError

# 2024-01-01 is a Monday; 2024-01-07 is a Sunday.
MONDAY_JAN_1 = datetime(2024, 1, 1, 0, 0)
TUESDAY_JAN_2 = datetime(2024, 1, 2, 0, 0)
SUNDAY_JAN_7 = datetime(2024, 1, 7, 0, 0)
MONDAY_JAN_8 = datetime(2024, 1, 8, 0, 0)
THURSDAY_FEB_1 = datetime(2024, 2, 1, 0, 0)


def test_reference_dates_are_the_expected_weekdays():
    assert MONDAY_JAN_1.isoweekday() == 1
    assert SUNDAY_JAN_7.isoweekday() == 7
    assert CronExpr.parse("* * * * 1").matches(MONDAY_JAN_1)


def test_every_minute_matches_anything():
    cron = CronExpr.parse("* * * * *")
    for when in (MONDAY_JAN_1, datetime(2024, 6, 15, 13, 47), datetime(1999, 12, 31, 23, 59)):
        assert cron.matches(when)


def test_step_over_star():
    cron = CronExpr.parse("*/15 * * * *")
    for minute in (0, 15, 30, 45):
        assert cron.matches(MONDAY_JAN_1.replace(minute=minute))
    assert not cron.matches(MONDAY_JAN_1.replace(minute=7))


def test_ranges_lists_and_steps():
    cron = CronExpr.parse("1-10/3,50 9-17 * * *")
    assert cron.matches(MONDAY_JAN_1.replace(hour=9, minute=4))
    assert cron.matches(MONDAY_JAN_1.replace(hour=17, minute=50))
    assert not cron.matches(MONDAY_JAN_1.replace(hour=9, minute=5))
    assert not cron.matches(MONDAY_JAN_1.replace(hour=18, minute=1))


def test_month_field():
    cron = CronExpr.parse("0 0 * 2 *")
    assert cron.matches(THURSDAY_FEB_1)
    assert not cron.matches(MONDAY_JAN_1)


def test_both_day_fields_restricted_use_or():
    cron = CronExpr.parse("0 0 1 * 1")
    assert cron.matches(MONDAY_JAN_1)
    assert cron.matches(MONDAY_JAN_8)
    assert cron.matches(THURSDAY_FEB_1)
    assert not cron.matches(TUESDAY_JAN_2)


def test_one_day_field_star_uses_and():
    by_day = CronExpr.parse("0 0 1 * *")
    assert by_day.matches(MONDAY_JAN_1)
    assert not by_day.matches(MONDAY_JAN_8)
    by_weekday = CronExpr.parse("0 0 * * 1")
    assert by_weekday.matches(MONDAY_JAN_8)
    assert not by_weekday.matches(TUESDAY_JAN_2)


def test_sunday_as_zero_or_seven():
    assert CronExpr.parse("0 0 * * 0").matches(SUNDAY_JAN_7)
    assert CronExpr.parse("0 0 * * 7").matches(SUNDAY_JAN_7)
    assert CronExpr.parse("0 0 * * 7") == CronExpr.parse("0 0 * * 0")


def test_star_flags():
    cron = CronExpr.parse("* * */2 * 1-5")
    assert not cron.dom_star
    assert not cron.dow_star
    plain = CronExpr.parse("* * * * *")
    assert plain.dom_star and plain.dow_star


def test_aware_datetime_is_converted_to_utc():
    cron = CronExpr.parse("0 0 * * *")
    plus_one = timezone(timedelta(hours=1))
    assert cron.matches(datetime(2024, 1, 1, 1, 0, tzinfo=plus_one))
    assert not cron.matches(datetime(2024, 1, 1, 0, 0, tzinfo=plus_one))


def test_trailing_comma_is_tolerated():
    cron = CronExpr.parse("5, * * * *")
    assert cron.matches(MONDAY_JAN_1.replace(minute=5))
    assert not cron.matches(MONDAY_JAN_1.replace(minute=6))


@pytest.mark.parametrize(
    "expr",
    [
        "",
        "* * * *",
        "* * * * * *",
        "60 * * * *",
        "* 24 * * *",
        "* * 0 * *",
        "* * 32 * *",
        "* * * 0 *",
        "* * * 13 *",
        "* * * * 8",
        "5-1 * * * *",
        "*/0 * * * *",
        "*/-2 * * * *",
        "a * * * *",
        "1,,2 * * * *",
        ",1 * * * *",
        "-5 * * * *",
        "99999999999 * * * *",
    ],
)
def test_invalid_expressions(expr):
    with pytest.raises(CronParseError):
        CronExpr.parse(expr)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        CronExpr.parse("bad")