import logging
from typing import Optional

from drawboard.errors import AuthorizationError, GameNotFoundError, ValidationError
from drawboard.models import GAME_STATUSES, Game
from drawboard.realtime.bus import EventBus
from drawboard.realtime.events import GameCreated, GameDeleted, GameUpdated
from drawboard.services.results.repository import SqlAlchemyResultRepository

logger = logging.getLogger(__name__)

_TEXT_LIMITS = {'nick_name': 100, 'description': 500, 'result_time': 8}

# camelCase keys sent by the web client
_KEY_ALIASES = {'nickName': 'nick_name', 'resultTime': 'result_time'}


def _normalize(data: Optional[dict]) -> dict:
    data = dict(data or {})
    for alias, key in _KEY_ALIASES.items():
        if alias in data:
            value = data.pop(alias)
            data.setdefault(key, value)
    return data


def _text(data: dict, key: str, required: bool = False) -> Optional[str]:
    raw = data.get(key)
    if raw is None:
        if required:
            raise ValidationError('Game name is required')
        return None
    if not isinstance(raw, str):
        raise ValidationError(f'{key} must be a string')
    raw = raw.strip()
    if required and not raw:
        raise ValidationError('Game name is required')
    if len(raw) > _TEXT_LIMITS[key]:
        raise ValidationError(f'{key} must be at most {_TEXT_LIMITS[key]} characters')
    return raw


def _apply(game: Game, data: dict) -> None:
    if 'description' in data:
        game.description = _text(data, 'description')
    if 'result_time' in data:
        game.result_time = _text(data, 'result_time')
    if 'status' in data and data['status'] is not None:
        if data['status'] not in GAME_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(GAME_STATUSES)}")
        game.status = data['status']


class GameCatalog:
    """Game management. Every mutation is announced on the event bus."""

    def __init__(self, repository: SqlAlchemyResultRepository, bus: EventBus):
        self.repository = repository
        self.bus = bus

    def get(self, game_id: int) -> Game:
        game = self.repository.find_game(game_id)
        if game is None or not game.is_active:
            raise GameNotFoundError()
        return game

    def create(self, data: dict, user=None) -> Game:
        data = _normalize(data)
        game = Game(nick_name=_text(data, 'nick_name', required=True))
        _apply(game, data)
        if user is not None:
            game.created_by_id = user.id
        self.repository.save_game(game)
        logger.info(f"[game] created id={game.id} name={game.nick_name}")
        self.bus.publish(GameCreated(game_id=game.id, name=game.nick_name))
        return game

    def _check_owner(self, game: Game, user) -> None:
        if user is None:
            raise AuthorizationError('Not authorized to modify this game')
        if not getattr(user, 'is_admin', False) and game.created_by_id != user.id:
            raise AuthorizationError('Not authorized to modify this game')

    def update(self, game_id: int, data: dict, user=None) -> Game:
        game = self.get(game_id)
        self._check_owner(game, user)
        data = _normalize(data)
        if data.get('nick_name') is not None:
            game.nick_name = _text(data, 'nick_name', required=True)
        _apply(game, data)
        self.repository.save_game(game)
        logger.info(f"[game] updated id={game.id}")
        self.bus.publish(GameUpdated(game_id=game.id, name=game.nick_name))
        return game

    def delete(self, game_id: int, user=None) -> int:
        """Soft delete; the game's published results are removed. Returns the count removed."""
        game = self.get(game_id)
        self._check_owner(game, user)
        removed = self.repository.soft_delete_game(game)
        logger.info(f"[game] deleted id={game.id} results_removed={removed}")
        self.bus.publish(GameDeleted(game_id=game.id))
        return removed
