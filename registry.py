import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, Optional

from constants import DEFAULT_POSITION
from exceptions import UnknownIdentity
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    @classmethod
    def origin(cls) -> "Position":
        return cls(*DEFAULT_POSITION)

    def to_dict(self):
        return {"x": self.x, "y": self.y}


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class Connection:
    id: str
    session_id: str
    username: str
    current_room: Optional[str] = None
    position: Position = field(default_factory=Position.origin)
    frame: int = 0
    connected_at: str = field(default_factory=_now)
    last_activity: str = field(default_factory=_now)


class ConnectionRegistry:
    """All live connections, keyed by the identity handed out at register time."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, session_id: str) -> str:
        connection_id = str(uuid.uuid4())
        username = f"Player_{connection_id[:8]}"
        self._connections[connection_id] = Connection(
            id=connection_id,
            session_id=session_id,
            username=username,
        )
        logger.debug(f"Registered connection {connection_id} as {username} (session {session_id})")
        return connection_id

    def lookup(self, connection_id: str) -> Connection:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise UnknownIdentity(connection_id)
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def rename(self, connection_id: str, username: str):
        connection = self.lookup(connection_id)
        logger.debug(f"Renaming {connection_id}: {connection.username} -> {username}")
        connection.username = username

    def set_room(self, connection_id: str, room_id: Optional[str]):
        self.lookup(connection_id).current_room = room_id

    def update_position(self, connection_id: str, position: Position, frame: int):
        connection = self._connections.get(connection_id)
        if connection is None or connection.current_room is None:
            return
        connection.position = position
        connection.frame = frame
        connection.last_activity = _now()

    def touch(self, connection_id: str):
        connection = self._connections.get(connection_id)
        if connection is not None:
            connection.last_activity = _now()

    def remove(self, connection_id: str):
        # Callers leave the current room first; the registry does not cascade
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            logger.debug(f"Removed connection {connection_id} ({connection.username})")

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def ids(self):
        return list(self._connections.keys())
