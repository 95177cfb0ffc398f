import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional, Union

from drawboard.errors import (
    AlreadyPublishedError,
    AuthorizationError,
    GameNotFoundError,
    ResultNotFoundError,
    ValidationError,
)
from drawboard.realtime.bus import EventBus
from drawboard.realtime.events import ResultPosted
from .clock import GameDay, GameDayClock
from .repository import ResultRepository

logger = logging.getLogger(__name__)

MAX_VALUE_LENGTH = 16


def clean_value(value) -> str:
    if value is None or isinstance(value, bool):
        raise ValidationError('value is required')
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError('value must be a string or number')
    value = value.strip()
    if not value:
        raise ValidationError('value is required')
    if len(value) > MAX_VALUE_LENGTH:
        raise ValidationError(f'value must be at most {MAX_VALUE_LENGTH} characters')
    return value


def clean_id(raw, name: str = 'gameId') -> int:
    if raw is None or raw == '' or isinstance(raw, bool):
        raise ValidationError(f'{name} is required')
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer') from None


class ResultPublisher:
    """The only write path that creates official results.

    ``publish`` performs exactly one repository write and at most one event
    emission. ``amend`` and ``retract`` emit nothing: only result creation
    is broadcast to viewers.
    """

    def __init__(self, clock: GameDayClock, repository: ResultRepository, bus: EventBus,
                 now: Optional[Callable[[], datetime]] = None):
        self.clock = clock
        self.repository = repository
        self.bus = bus
        self._now = now or (lambda: datetime.now(timezone.utc))

    def resolve_day(self, as_of: Optional[datetime] = None,
                    game_day: Union[GameDay, date, str, None] = None) -> GameDay:
        if game_day is not None:
            if isinstance(game_day, GameDay):
                return game_day
            if isinstance(game_day, str):
                try:
                    return self.clock.parse_day(game_day)
                except ValueError as exc:
                    raise ValidationError(str(exc)) from None
            if isinstance(game_day, date) and not isinstance(game_day, datetime):
                return self.clock.day(game_day)
            raise ValidationError('game_day must be a date in YYYY-MM-DD format')
        return self.clock.game_day_of(as_of or self._now())

    def publish(self, game_id, value, as_of: Optional[datetime] = None,
                published_by: Optional[int] = None, game_day: Union[GameDay, date, str, None] = None):
        game_id = clean_id(game_id)
        value = clean_value(value)
        day = self.resolve_day(as_of, game_day)

        game = self.repository.find_game(game_id)
        if game is None or not game.is_active:
            raise GameNotFoundError()

        if self.repository.find_result_for_game_on_day(game_id, day) is not None:
            logger.info(f"[publish] rejected game={game_id} day={day}: already published")
            raise AlreadyPublishedError()

        published_at = self._now().astimezone(timezone.utc).replace(tzinfo=None)
        try:
            result = self.repository.insert_result(game_id, day, value, published_at, published_by)
        except AlreadyPublishedError:
            # Lost the race to a concurrent publisher; the constraint decided
            logger.info(f"[publish] rejected game={game_id} day={day}: unique constraint")
            raise

        logger.info(f"[publish] game={game_id} day={day} value={value} by={published_by}")
        self.bus.publish(ResultPosted(game_id=game_id, value=value))
        return result

    def amend(self, result_id, new_value):
        result_id = clean_id(result_id, 'resultId')
        new_value = clean_value(new_value)
        result = self.repository.get_result(result_id)
        if result is None:
            raise ResultNotFoundError()
        result = self.repository.update_result_value(result, new_value)
        logger.info(f"[amend] result={result_id} value={new_value}")
        return result

    def retract(self, result_id) -> None:
        result_id = clean_id(result_id, 'resultId')
        result = self.repository.get_result(result_id)
        if result is None:
            raise ResultNotFoundError()
        self.repository.delete_result(result)
        logger.info(f"[retract] result={result_id}")


def publish_result(publisher: ResultPublisher, game_id, value, caller_is_privileged: bool, **kwargs):
    """Inbound command: the caller's privilege has already been decided elsewhere."""
    if not caller_is_privileged:
        raise AuthorizationError()
    return publisher.publish(game_id, value, **kwargs)
