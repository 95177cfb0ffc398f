from flask import current_app, request
from flask_socketio import emit
from drawboard import socketio
from drawboard.realtime import SocketIOSink, get_gateway

NAMESPACE = '/ws'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    sid = _get_sid()
    # The gateway keys the connection by sid so disconnect can find it
    conn = get_gateway().open(SocketIOSink(socketio, sid, namespace=NAMESPACE), key=sid)
    if conn.is_open:
        current_app.logger.info(f"[ws] connect sid={sid} connection={conn.id}")


def handle_disconnect(*args):
    sid = _get_sid()
    if get_gateway().close_key(sid):
        current_app.logger.info(f"[ws] disconnect sid={sid}")


def handle_ping(data):
    # Server push only; ping lets clients measure round trip
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
