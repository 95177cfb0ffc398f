"""Storage collaborator for games and published results.

The publisher only talks to the :class:`ResultRepository` interface. The
SQLAlchemy implementation relies on the ``uq_published_result_game_day``
constraint for uniqueness and reports a violation of it as
:class:`AlreadyPublishedError`; every other storage fault becomes
:class:`RepositoryError`.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from drawboard import db
from drawboard.errors import AlreadyPublishedError, RepositoryError
from drawboard.models import Game, PublishedResult
from .clock import GameDay

logger = logging.getLogger(__name__)

UNIQUE_CONSTRAINT = 'uq_published_result_game_day'


class ResultRepository:
    """Interface the publish path depends on."""

    def find_game(self, game_id: int) -> Optional[Game]:
        raise NotImplementedError

    def find_result_for_game_on_day(self, game_id: int, game_day: GameDay) -> Optional[PublishedResult]:
        raise NotImplementedError

    def insert_result(self, game_id: int, game_day: GameDay, value: str,
                      published_at: datetime, published_by: Optional[int] = None) -> PublishedResult:
        raise NotImplementedError

    def list_results_for_day(self, game_day: GameDay) -> List[PublishedResult]:
        raise NotImplementedError

    def get_result(self, result_id: int) -> Optional[PublishedResult]:
        raise NotImplementedError

    def update_result_value(self, result: PublishedResult, value: str) -> PublishedResult:
        raise NotImplementedError

    def delete_result(self, result: PublishedResult) -> None:
        raise NotImplementedError


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, 'orig', None)
    if getattr(orig, 'pgcode', None) == '23505':
        return True
    text = str(orig or exc)
    return UNIQUE_CONSTRAINT in text or 'UNIQUE constraint failed' in text


class SqlAlchemyResultRepository(ResultRepository):

    @contextmanager
    def _writing(self):
        try:
            yield
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if _is_unique_violation(exc):
                raise AlreadyPublishedError() from exc
            raise RepositoryError(str(exc.orig or exc)) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error(f"[repository] write failed: {exc}")
            raise RepositoryError(str(exc)) from exc

    @contextmanager
    def _reading(self):
        try:
            yield
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RepositoryError(str(exc)) from exc

    # ---- games ----

    def find_game(self, game_id):
        with self._reading():
            return db.session.get(Game, game_id)

    def list_active_games(self, status: Optional[str] = None) -> List[Game]:
        with self._reading():
            query = Game.query.filter_by(is_active=True)
            if status:
                query = query.filter_by(status=status)
            return query.order_by(Game.created_at.desc(), Game.id.desc()).all()

    def save_game(self, game: Game) -> Game:
        with self._writing():
            db.session.add(game)
        return game

    def soft_delete_game(self, game: Game) -> int:
        """Deactivate ``game`` and drop its results in one transaction."""
        with self._writing():
            removed = PublishedResult.query.filter_by(game_id=game.id).delete(synchronize_session=False)
            game.is_active = False
            db.session.add(game)
        return removed

    # ---- results ----

    def find_result_for_game_on_day(self, game_id, game_day):
        with self._reading():
            return PublishedResult.query.filter_by(game_id=game_id, game_day=game_day.day).first()

    def insert_result(self, game_id, game_day, value, published_at, published_by=None):
        result = PublishedResult(
            game_id=game_id,
            game_day=game_day.day,
            value=value,
            published_at=published_at,
            published_by_id=published_by,
        )
        with self._writing():
            db.session.add(result)
        return result

    def list_results_for_day(self, game_day):
        with self._reading():
            return (PublishedResult.query
                    .filter_by(game_day=game_day.day)
                    .order_by(PublishedResult.published_at.asc())
                    .all())

    def get_result(self, result_id):
        with self._reading():
            return db.session.get(PublishedResult, result_id)

    def update_result_value(self, result, value):
        with self._writing():
            result.value = value
            db.session.add(result)
        return result

    def delete_result(self, result):
        with self._writing():
            db.session.delete(result)

    def search_results(self, start_day: Optional[GameDay] = None, end_day: Optional[GameDay] = None,
                       published_between: Optional[Tuple[datetime, datetime]] = None,
                       game_id: Optional[int] = None, page: int = 1, limit: int = 10):
        """Paginated history, newest game day first. Returns ``(items, total)``."""
        with self._reading():
            query = PublishedResult.query
            if start_day is not None:
                query = query.filter(PublishedResult.game_day >= start_day.day)
            if end_day is not None:
                query = query.filter(PublishedResult.game_day <= end_day.day)
            if published_between is not None:
                start, end = (t.replace(tzinfo=None) for t in published_between)
                query = query.filter(PublishedResult.published_at >= start, PublishedResult.published_at < end)
            if game_id is not None:
                query = query.filter_by(game_id=game_id)
            total = query.count()
            items = (query.order_by(PublishedResult.game_day.desc(), PublishedResult.id.desc())
                     .offset((page - 1) * limit)
                     .limit(limit)
                     .all())
            return items, total
