import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from .events import ALL_KINDS, DomainEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionHandle:
    id: int
    kinds: FrozenSet[str] = field(default=ALL_KINDS)


class EventBus:
    """In-process publish/subscribe hub.

    Delivery is synchronous and best-effort: only subscriptions registered
    at the time of ``publish`` see the event, nothing is buffered, and the
    order in which subscribers are called is unspecified.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[int, tuple] = {}
        self._ids = itertools.count(1)

    def subscribe(self, callback: Callable[[DomainEvent], None],
                  kinds: Optional[Iterable[str]] = None) -> SubscriptionHandle:
        kinds = frozenset(kinds) if kinds is not None else ALL_KINDS
        unknown = kinds - ALL_KINDS
        if unknown:
            raise ValueError(f'Unknown event kinds: {sorted(unknown)}')
        with self._lock:
            handle = SubscriptionHandle(next(self._ids), kinds)
            self._subscribers[handle.id] = (handle, callback)
        logger.debug(f"[bus] subscribe id={handle.id} kinds={sorted(kinds)}")
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        with self._lock:
            removed = self._subscribers.pop(handle.id, None)
        if removed is not None:
            logger.debug(f"[bus] unsubscribe id={handle.id}")

    def publish(self, event: DomainEvent) -> int:
        """Deliver ``event`` to every matching subscriber; returns the number attempted."""
        with self._lock:
            targets = [cb for h, cb in self._subscribers.values() if event.kind in h.kinds]
        delivered = 0
        # Callbacks run outside the lock so they may unsubscribe themselves
        for callback in targets:
            delivered += 1
            try:
                callback(event)
            except Exception:
                logger.exception(f"[bus] subscriber failed on {event.kind} game={event.game_id}")
        logger.info(f"[bus] publish {event.kind} game={event.game_id} subscribers={delivered}")
        return delivered

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
