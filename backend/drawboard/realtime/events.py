"""Domain events fanned out to live viewers. Never persisted."""
from dataclasses import dataclass
from typing import Any, ClassVar, Dict

RESULT_POSTED = 'result-posted'
GAME_CREATED = 'game-created'
GAME_UPDATED = 'game-updated'
GAME_DELETED = 'game-deleted'

ALL_KINDS = frozenset({RESULT_POSTED, GAME_CREATED, GAME_UPDATED, GAME_DELETED})


@dataclass(frozen=True)
class DomainEvent:
    game_id: int
    kind: ClassVar[str] = ''

    def to_payload(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'gameId': self.game_id}


@dataclass(frozen=True)
class ResultPosted(DomainEvent):
    value: str = ''
    kind: ClassVar[str] = RESULT_POSTED

    def to_payload(self):
        payload = super().to_payload()
        payload['value'] = self.value
        return payload


@dataclass(frozen=True)
class GameCreated(DomainEvent):
    name: str = ''
    kind: ClassVar[str] = GAME_CREATED

    def to_payload(self):
        payload = super().to_payload()
        payload['name'] = self.name
        return payload


@dataclass(frozen=True)
class GameUpdated(DomainEvent):
    name: str = ''
    kind: ClassVar[str] = GAME_UPDATED

    def to_payload(self):
        payload = super().to_payload()
        payload['name'] = self.name
        return payload


@dataclass(frozen=True)
class GameDeleted(DomainEvent):
    kind: ClassVar[str] = GAME_DELETED
