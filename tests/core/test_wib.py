from datetime import date, datetime, time, timezone

import pytest

from app.sekolah.core.wib import (
    format_hhmm,
    format_wib_clock,
    format_wib_long_date,
    is_friday,
    iter_dates,
    minutes_until,
    parse_hhmm,
    wib_date,
    wib_date_str,
    wib_date_from_iso,
    wib_day_bounds,
    wib_time_hm,
    wib_weekday_name,
)


def test_utc_evening_is_next_day_in_wib():
    """18:30 UTC on the 19th is already 01:30 on the 20th in Jakarta."""
    moment = datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
    assert wib_date(moment) == date(2026, 10, 20)
    assert wib_date_str(moment) == "2026-10-20"
    assert wib_time_hm(moment) == "01:30"
    assert wib_date_from_iso("2026-10-19T18:30:00Z") == date(2026, 10, 20)


def test_naive_datetimes_are_treated_as_utc():
    assert wib_time_hm(datetime(2026, 10, 19, 0, 5)) == "07:05"


def test_weekday_names_are_indonesian():
    assert wib_weekday_name(date(2026, 10, 19)) == "Senin"
    assert wib_weekday_name("2026-10-23") == "Jumat"
    assert wib_weekday_name(date(2026, 10, 25)) == "Minggu"


def test_is_friday():
    assert is_friday(date(2026, 10, 23))
    assert not is_friday(date(2026, 10, 24))


def test_display_formats():
    moment = datetime(2026, 10, 19, 1, 2, 3, tzinfo=timezone.utc)
    assert format_wib_clock(moment) == "08.02.03"
    assert format_wib_long_date(moment) == "Senin, 19 Oktober 2026"


def test_day_bounds_cover_one_wib_day():
    start, end = wib_day_bounds(date(2026, 10, 19))
    assert start.astimezone(timezone.utc) == datetime(2026, 10, 18, 17, 0, tzinfo=timezone.utc)
    assert (end - start).total_seconds() == 24 * 3600


@pytest.mark.parametrize("value, expected", [("07:30", time(7, 30)), ("14:00:00", time(14, 0)), (time(9, 5), time(9, 5))])
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected


@pytest.mark.parametrize("value", ["7", "aa:bb", "25:00", "07:30:00:00"])
def test_parse_hhmm_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_format_hhmm_drops_seconds():
    assert format_hhmm("14:00:00") == "14:00"
    assert format_hhmm(time(7, 5)) == "07:05"


def test_minutes_until():
    assert minutes_until("07:30", "07:20") == 10
    assert minutes_until("07:30", "07:35") == -5


def test_iter_dates_is_inclusive():
    days = list(iter_dates(date(2026, 10, 19), date(2026, 10, 21)))
    assert days == [date(2026, 10, 19), date(2026, 10, 20), date(2026, 10, 21)]
    assert list(iter_dates(date(2026, 10, 21), date(2026, 10, 19))) == []
