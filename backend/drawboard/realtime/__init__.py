"""Live broadcast of result and game mutations.

The bus and gateway are created per application in ``create_app`` and
stored on ``app.extensions``; use the accessors below from request or
socket handlers.
"""
from flask import current_app

from .bus import EventBus, SubscriptionHandle
from .gateway import BroadcastGateway, Connection, QueueSink, SocketIOSink


def get_event_bus() -> EventBus:
    return current_app.extensions['event_bus']


def get_gateway() -> BroadcastGateway:
    return current_app.extensions['broadcast_gateway']
