"""Result publishing services: game day clock, repository and publisher.

HTTP routes and socket handlers import from here; nothing below this
package knows about request objects.
"""
from flask import current_app

from drawboard.realtime import get_event_bus
from .clock import GameDay, GameDayClock
from .publisher import ResultPublisher, publish_result
from .repository import ResultRepository, SqlAlchemyResultRepository


def get_clock() -> GameDayClock:
    return current_app.extensions['game_day_clock']


def get_publisher() -> ResultPublisher:
    return ResultPublisher(get_clock(), SqlAlchemyResultRepository(), get_event_bus())
