"""
Wire types exchanged with the Marco bridge.

Response types expose from_api(), which raises ValueError when the
decoded JSON does not have the expected shape.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Tuple


@dataclass(frozen=True)
class Player:
    """A game player who authored an outbound message."""
    uuid: str
    name: str

    def to_api(self) -> Dict[str, str]:
        return {'uuid': self.uuid, 'name': self.name}


@dataclass(frozen=True)
class ChatMessage:
    """Outbound chat message sent to the bridge."""
    player: Player
    text: str

    def to_api(self) -> Dict[str, Any]:
        return {'player': self.player.to_api(), 'text': self.text}


@dataclass(frozen=True)
class InboundChatBatch:
    """Messages fetched from the room in one poll, oldest first."""
    messages: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> 'InboundChatBatch':
        return cls()

    @classmethod
    def from_api(cls, data: Any) -> 'InboundChatBatch':
        """Create batch from a {"chat": [...]} response."""
        if not isinstance(data, dict):
            raise ValueError(f"expected JSON object, got {type(data).__name__}")

        chat = data.get('chat')
        if not isinstance(chat, list):
            raise ValueError("'chat' must be a list")

        for item in chat:
            if not isinstance(item, str):
                raise ValueError(f"chat entries must be strings, got {type(item).__name__}")

        return cls(messages=tuple(chat))

    def __iter__(self) -> Iterator[str]:
        return iter(self.messages)

    def __len__(self):
        return len(self.messages)


@dataclass(frozen=True)
class HealthStatus:
    """Result of the /vibeCheck probe."""
    ok: bool = False

    @classmethod
    def from_api(cls, data: Any) -> 'HealthStatus':
        if not isinstance(data, dict):
            raise ValueError(f"expected JSON object, got {type(data).__name__}")

        ok = data.get('ok', False)
        if not isinstance(ok, bool):
            raise ValueError("'ok' must be a boolean")

        return cls(ok=ok)
