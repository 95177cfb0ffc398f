from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from drawboard.services.results.clock import GameDay, GameDayClock

IST = ZoneInfo('Asia/Kolkata')


@pytest.fixture()
def clock():
    return GameDayClock('Asia/Kolkata', 6)


def ist(*args):
    return datetime(*args, tzinfo=IST)


def test_before_rollover_belongs_to_previous_day(clock):
    assert clock.game_day_of(ist(2025, 12, 6, 3, 0)).day == date(2025, 12, 5)


def test_rollover_instant_belongs_to_new_day(clock):
    assert clock.game_day_of(ist(2025, 12, 6, 6, 0)).day == date(2025, 12, 6)


def test_one_tick_before_rollover_is_previous_day(clock):
    instant = ist(2025, 12, 6, 6, 0) - timedelta(microseconds=1)
    assert clock.game_day_of(instant).day == date(2025, 12, 5)


def test_game_day_is_stable_across_calls(clock):
    instant = ist(2025, 12, 6, 20, 0)
    first = clock.game_day_of(instant)
    assert all(clock.game_day_of(instant) == first for _ in range(5))
    assert first == GameDay(date(2025, 12, 6), 'Asia/Kolkata')


def test_utc_and_naive_instants_are_converted_through_the_zone(clock):
    # 00:30 UTC is 06:00 IST
    assert clock.game_day_of(datetime(2025, 12, 6, 0, 30, tzinfo=timezone.utc)).day == date(2025, 12, 6)
    assert clock.game_day_of(datetime(2025, 12, 6, 0, 29)).day == date(2025, 12, 5)


def test_strict_window_matches_game_day_edges(clock):
    day = clock.parse_day('2025-12-06')
    start, end = clock.strict_window(day)
    assert start == datetime(2025, 12, 6, 0, 30, tzinfo=timezone.utc)
    assert end == datetime(2025, 12, 7, 0, 30, tzinfo=timezone.utc)
    assert clock.game_day_of(start) == day
    assert clock.game_day_of(end - timedelta(microseconds=1)) == day
    assert clock.game_day_of(end) == day.next()


def test_simple_window_is_local_midnight_to_midnight(clock):
    start, end = clock.simple_window(clock.parse_day('2025-12-06'))
    assert start == datetime(2025, 12, 5, 18, 30, tzinfo=timezone.utc)
    assert end == datetime(2025, 12, 6, 18, 30, tzinfo=timezone.utc)


def test_windows_follow_dst_transitions():
    ny = GameDayClock('America/New_York', 6)
    # 2025-03-09 02:00 local clocks jump forward; the 03-08 game day is 23h long
    start, end = ny.strict_window(ny.parse_day('2025-03-08'))
    assert start == datetime(2025, 3, 8, 11, 0, tzinfo=timezone.utc)
    assert end == datetime(2025, 3, 9, 10, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(hours=23)
    assert ny.game_day_of(datetime(2025, 3, 9, 9, 59, tzinfo=timezone.utc)).day == date(2025, 3, 8)
    assert ny.game_day_of(datetime(2025, 3, 9, 10, 0, tzinfo=timezone.utc)).day == date(2025, 3, 9)


def test_rollover_zero_is_calendar_midnight():
    midnight = GameDayClock('Asia/Kolkata', 0)
    assert midnight.game_day_of(ist(2025, 12, 6, 0, 0)).day == date(2025, 12, 6)
    day = midnight.parse_day('2025-12-06')
    assert midnight.strict_window(day) == midnight.simple_window(day)


@pytest.mark.parametrize('hour', [-1, 24])
def test_rollover_hour_out_of_range(hour):
    with pytest.raises(ValueError):
        GameDayClock('Asia/Kolkata', hour)


def test_formatting_is_zoned(clock):
    instant = datetime(2025, 12, 6, 14, 30, tzinfo=timezone.utc)  # 20:00 IST
    assert clock.format_date(instant) == 'Dec 06, 2025'
    assert clock.format_time(instant) == '08:00 PM'
    assert clock.format(instant, '%Y-%m-%d %H:%M') == '2025-12-06 20:00'


def test_today_and_is_today(clock):
    now = ist(2025, 12, 7, 2, 0)
    assert clock.today(now).day == date(2025, 12, 6)
    assert clock.is_today(ist(2025, 12, 6, 21, 0), now=now)
    assert not clock.is_today(ist(2025, 12, 7, 7, 0), now=now)


def test_day_range_is_inclusive(clock):
    days = clock.day_range(clock.parse_day('2025-12-01'), clock.parse_day('2025-12-03'))
    assert [d.isoformat() for d in days] == ['2025-12-01', '2025-12-02', '2025-12-03']
    assert clock.day_range(clock.parse_day('2025-12-03'), clock.parse_day('2025-12-01')) == []


def test_parse_day_rejects_garbage(clock):
    with pytest.raises(ValueError):
        clock.parse_day('06/12/2025')
