"""Game day arithmetic.

A game day does not roll over at midnight: instants whose local hour in the
anchor zone is before ``rollover_hour`` still belong to the previous
calendar date. This module is the only place that decides what "today"
means; everything else asks a :class:`GameDayClock`.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo


@dataclass(frozen=True, order=True)
class GameDay:
    day: date
    zone: str

    def isoformat(self) -> str:
        return self.day.isoformat()

    def next(self) -> 'GameDay':
        return GameDay(self.day + timedelta(days=1), self.zone)

    def previous(self) -> 'GameDay':
        return GameDay(self.day - timedelta(days=1), self.zone)

    def __str__(self) -> str:
        return self.isoformat()


def _as_utc(instant: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


class GameDayClock:
    """Maps instants to game days for one anchor zone and rollover hour."""

    def __init__(self, anchor_zone: str, rollover_hour: int):
        if not 0 <= int(rollover_hour) <= 23:
            raise ValueError(f'rollover_hour must be between 0 and 23, got {rollover_hour}')
        self.anchor_zone = anchor_zone
        self.rollover_hour = int(rollover_hour)
        self._tz = ZoneInfo(anchor_zone)

    @classmethod
    def from_config(cls, config) -> 'GameDayClock':
        return cls(config.get('GAME_ANCHOR_ZONE', 'Asia/Kolkata'), config.get('GAME_ROLLOVER_HOUR', 6))

    def localize(self, instant: datetime) -> datetime:
        return _as_utc(instant).astimezone(self._tz)

    def game_day_of(self, instant: datetime) -> GameDay:
        local = self.localize(instant)
        if local.hour < self.rollover_hour:
            return GameDay(local.date() - timedelta(days=1), self.anchor_zone)
        return GameDay(local.date(), self.anchor_zone)

    def today(self, now: Optional[datetime] = None) -> GameDay:
        return self.game_day_of(now or datetime.now(timezone.utc))

    def is_today(self, instant: datetime, now: Optional[datetime] = None) -> bool:
        return self.game_day_of(instant) == self.today(now)

    def _local_start(self, day: date, hour: int) -> datetime:
        # Re-derived through the zone each time; no fixed offset is assumed
        return datetime.combine(day, time(hour), tzinfo=self._tz).astimezone(timezone.utc)

    def strict_window(self, game_day: GameDay) -> Tuple[datetime, datetime]:
        """UTC ``[start, end)`` of the instants that belong to ``game_day``.

        Runs from ``rollover_hour`` on the game day's date to ``rollover_hour``
        on the following date, so it agrees with :meth:`game_day_of` at both
        edges. Used for same-day duplicate detection and backfill.
        """
        return (
            self._local_start(game_day.day, self.rollover_hour),
            self._local_start(game_day.day + timedelta(days=1), self.rollover_hour),
        )

    def simple_window(self, game_day: GameDay) -> Tuple[datetime, datetime]:
        """UTC ``[start, end)`` of the plain local calendar date (midnight to midnight)."""
        return (
            self._local_start(game_day.day, 0),
            self._local_start(game_day.day + timedelta(days=1), 0),
        )

    def day(self, value: date) -> GameDay:
        return GameDay(value, self.anchor_zone)

    def parse_day(self, text: str) -> GameDay:
        try:
            return GameDay(date.fromisoformat(str(text).strip()[:10]), self.anchor_zone)
        except ValueError:
            raise ValueError(f'Invalid date format: {text!r} (expected YYYY-MM-DD)') from None

    def day_range(self, start: GameDay, end: GameDay) -> List[GameDay]:
        days = []
        current = start
        while current <= end:
            days.append(current)
            current = current.next()
        return days

    def format(self, instant: datetime, pattern: str) -> str:
        return self.localize(instant).strftime(pattern)

    def format_date(self, instant: datetime) -> str:
        return self.format(instant, '%b %d, %Y')

    def format_time(self, instant: datetime) -> str:
        return self.format(instant, '%I:%M %p')
