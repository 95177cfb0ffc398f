"""Per-viewer broadcast connections.

A connection moves ``connecting -> open -> closed`` exactly once. While open
it is subscribed to the event bus, and every event is written to its sink.
A failed write, a client disconnect or a server shutdown all end up in
:meth:`BroadcastGateway.close`, which tears the connection down once no
matter how many of those fire.
"""
import logging
import queue
import threading
import uuid
from typing import Callable, Dict, Iterator, Optional

from drawboard.errors import TransportError
from .bus import EventBus, SubscriptionHandle
from .events import ALL_KINDS, DomainEvent
from .wire import HEARTBEAT, SSE_HEARTBEAT, connected_payload, sse_frame

logger = logging.getLogger(__name__)

CONNECTING = 'connecting'
OPEN = 'open'
CLOSED = 'closed'


class QueueSink:
    """Bounded frame buffer drained by a streaming (SSE) response."""

    _CLOSED = None

    def __init__(self, maxsize: int = 100):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)

    def _put(self, frame: str) -> None:
        try:
            self._queue.put_nowait(frame)
        except queue.Full:
            raise TransportError('viewer is not draining its stream')

    def send(self, payload: dict) -> None:
        self._put(sse_frame(payload))

    def heartbeat(self) -> None:
        self._put(SSE_HEARTBEAT)

    def close(self) -> None:
        # Wake the reader even if the buffer is full
        while True:
            try:
                self._queue.put_nowait(self._CLOSED)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def frames(self) -> Iterator[str]:
        while True:
            frame = self._queue.get()
            if frame is self._CLOSED:
                return
            yield frame


class SocketIOSink:
    """Writes frames to a single Socket.IO session; the frame kind is the event name."""

    def __init__(self, socketio, sid: str, namespace: str = '/ws'):
        self._socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def send(self, payload: dict) -> None:
        try:
            self._socketio.emit(payload['kind'], payload, to=self.sid, namespace=self.namespace)
        except Exception as exc:
            raise TransportError(str(exc)) from exc

    def heartbeat(self) -> None:
        try:
            self._socketio.emit(HEARTBEAT, {}, to=self.sid, namespace=self.namespace)
        except Exception as exc:
            raise TransportError(str(exc)) from exc

    def close(self) -> None:
        pass


class Connection:
    def __init__(self, sink, key: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self.sink = sink
        # Transport-side identity, e.g. the Socket.IO sid
        self.key = key
        self.state = CONNECTING
        self.handle: Optional[SubscriptionHandle] = None
        self._stopped = threading.Event()
        self._state_lock = threading.Lock()
        # Serialises writes on this connection only; never shared between viewers
        self._write_lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.state == OPEN


def _spawn_thread(target, *args):
    worker = threading.Thread(target=target, args=args, daemon=True)
    worker.start()
    return worker


class BroadcastGateway:

    def __init__(self, bus: EventBus, keepalive_interval: float = 30,
                 spawn: Optional[Callable] = None):
        self.bus = bus
        self.keepalive_interval = keepalive_interval
        self._spawn = spawn or _spawn_thread
        self._lock = threading.Lock()
        self._connections: Dict[str, Connection] = {}
        self._keys: Dict[str, str] = {}

    def open(self, sink, key: Optional[str] = None) -> Connection:
        conn = Connection(sink, key)
        with self._lock:
            self._connections[conn.id] = conn
            if key is not None:
                self._keys[key] = conn.id
        # Hold the write lock so the acknowledgement is always the first frame
        with conn._write_lock:
            conn.handle = self.bus.subscribe(lambda event: self._deliver(conn, event), ALL_KINDS)
            conn.state = OPEN
            if not self._write(conn, connected_payload(conn.id)):
                return conn
        logger.info(f"[gateway] open id={conn.id} connections={self.connection_count}")
        if self.keepalive_interval and self.keepalive_interval > 0:
            self._spawn(self._keepalive, conn)
        return conn

    def close(self, conn: Connection) -> bool:
        """Tear ``conn`` down. Returns False when it was already closed."""
        with conn._state_lock:
            if conn.state == CLOSED:
                return False
            conn.state = CLOSED
        conn._stopped.set()
        if conn.handle is not None:
            self.bus.unsubscribe(conn.handle)
        with self._lock:
            self._connections.pop(conn.id, None)
            if conn.key is not None and self._keys.get(conn.key) == conn.id:
                del self._keys[conn.key]
        try:
            conn.sink.close()
        except Exception as exc:
            logger.warning(f"[gateway] sink close failed id={conn.id}: {exc}")
        logger.info(f"[gateway] closed id={conn.id} connections={self.connection_count}")
        return True

    def get(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    def get_by_key(self, key: str) -> Optional[Connection]:
        with self._lock:
            connection_id = self._keys.get(key)
            return self._connections.get(connection_id) if connection_id else None

    def close_key(self, key: str) -> bool:
        conn = self.get_by_key(key)
        if conn is None:
            return False
        return self.close(conn)

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def close_all(self) -> None:
        with self._lock:
            conns = list(self._connections.values())
        for conn in conns:
            self.close(conn)

    def _deliver(self, conn: Connection, event: DomainEvent) -> None:
        self._write(conn, event.to_payload())

    def _write(self, conn: Connection, payload: dict) -> bool:
        with conn._write_lock:
            if not conn.is_open:
                return False
            try:
                conn.sink.send(payload)
                return True
            except Exception as exc:
                logger.info(f"[gateway] write failed id={conn.id} kind={payload.get('kind')}: {exc}")
        self.close(conn)
        return False

    def _heartbeat(self, conn: Connection) -> bool:
        with conn._write_lock:
            if not conn.is_open:
                return False
            try:
                conn.sink.heartbeat()
                return True
            except Exception as exc:
                logger.info(f"[gateway] heartbeat failed id={conn.id}: {exc}")
        self.close(conn)
        return False

    def _keepalive(self, conn: Connection) -> None:
        while not conn._stopped.wait(self.keepalive_interval):
            if not self._heartbeat(conn):
                return
