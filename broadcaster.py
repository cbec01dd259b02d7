import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from constants import MAX_PLAYERS_PER_ROOM, MOVE_LOG_SAMPLE_RATE
from exceptions import RoomFull, RoomNotFound
from logging_config import get_logger
from registry import ConnectionRegistry, Position
from transport import Transport

logger = get_logger(__name__)


@dataclass
class MemberRecord:
    """Room-local copy of a connection's public state."""

    id: str
    session_id: str
    username: str
    position: Position
    frame: int
    joined_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self):
        return {
            "id": self.id,
            "socketId": self.session_id,
            "username": self.username,
            "position": self.position.to_dict(),
            "frame": self.frame,
            "joinedAt": self.joined_at,
        }


class Room:
    def __init__(self, room_id: str):
        self.id = room_id
        # Format: {connection_id: MemberRecord}, in join order
        self.members: Dict[str, MemberRecord] = {}

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self.members

    def roster(self) -> List[dict]:
        return [member.to_dict() for member in self.members.values()]

    def peers(self, connection_id: str) -> List[str]:
        return [member_id for member_id in self.members if member_id != connection_id]


class RoomBroadcaster:
    """Room membership plus fanout of join/leave/move/animation events.

    A connection is either unjoined or joined to exactly one room. Every
    operation runs to completion without awaiting, so the registry and room
    maps never need locking.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        transport: Transport,
        room_ids: Iterable[str],
        max_players: int = MAX_PLAYERS_PER_ROOM,
        enforce_capacity: bool = False,
        move_log_sample_rate: float = MOVE_LOG_SAMPLE_RATE,
    ):
        self.registry = registry
        self.transport = transport
        self.rooms: Dict[str, Room] = {room_id: Room(room_id) for room_id in room_ids}
        self.max_players = max_players
        self.enforce_capacity = enforce_capacity
        self.move_log_sample_rate = move_log_sample_rate
        logger.info(f"Rooms initialized: {', '.join(self.rooms)} (max {max_players} players, enforced={enforce_capacity})")

    @property
    def room_ids(self) -> List[str]:
        return list(self.rooms)

    def room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def members(self, room_id: str) -> List[MemberRecord]:
        return list(self.room(room_id).members.values())

    def player_count(self, room_id: str) -> int:
        return len(self.room(room_id))

    def _room_update(self, room: Room):
        self.transport.broadcast({
            "type": "room_update",
            "roomId": room.id,
            "playerCount": len(room),
        })

    def check_join(self, connection_id: str, room_id: str) -> Room:
        """Raise RoomNotFound or RoomFull if the join would be rejected, without side effects."""
        room = self.room(room_id)
        if self.enforce_capacity and connection_id not in room and len(room) >= self.max_players:
            logger.info(f"Join rejected: room {room_id} is full ({len(room)}/{self.max_players})")
            raise RoomFull(room_id, self.max_players)
        return room

    def join(self, connection_id: str, room_id: str, position: Optional[Position] = None):
        client = self.registry.lookup(connection_id)
        room = self.check_join(connection_id, room_id)

        if client.current_room is not None:
            self.leave(connection_id)

        self.registry.set_room(connection_id, room_id)
        client.position = position or Position.origin()
        member = MemberRecord(
            id=connection_id,
            session_id=client.session_id,
            username=client.username,
            position=client.position,
            frame=client.frame,
        )
        room.members[connection_id] = member
        logger.info(f"{client.username} joined room {room_id} ({len(room)} players total)")

        self.transport.send(connection_id, {
            "type": "room_state",
            "roomId": room_id,
            "players": room.roster(),
            "playerCount": len(room),
        })
        self.transport.send_many(room.peers(connection_id), {
            "type": "player_joined",
            "player": member.to_dict(),
        })
        self._room_update(room)

    def leave(self, connection_id: str):
        client = self.registry.get(connection_id)
        if client is None or client.current_room is None:
            return

        room = self.rooms.get(client.current_room)
        self.registry.set_room(connection_id, None)
        if room is None:
            return

        room.members.pop(connection_id, None)
        self.transport.send_many(room.peers(connection_id), {
            "type": "player_left",
            "playerId": connection_id,
        })
        logger.info(f"{client.username} left room {room.id} ({len(room)} players remaining)")
        self._room_update(room)

    def move(self, connection_id: str, position: Position, frame: int):
        client = self.registry.get(connection_id)
        if client is None or client.current_room is None:
            return

        room = self.rooms.get(client.current_room)
        if room is None or connection_id not in room:
            return

        self.registry.update_position(connection_id, position, frame)
        member = room.members[connection_id]
        member.position = position
        member.frame = frame

        if random.random() < self.move_log_sample_rate:
            logger.debug(f"{client.username} moved in {room.id} to ({position.x}, {position.y})")

        self.transport.send_many(room.peers(connection_id), {
            "type": "player_moved",
            "playerId": connection_id,
            "position": position.to_dict(),
            "frame": frame,
        })

    def animate(self, connection_id: str, animation: str, frame: int):
        client = self.registry.get(connection_id)
        if client is None or client.current_room is None:
            return

        room = self.rooms.get(client.current_room)
        if room is None:
            return

        self.registry.touch(connection_id)
        logger.debug(f"{client.username} played animation: {animation}")
        self.transport.send_many(room.peers(connection_id), {
            "type": "player_animation",
            "playerId": connection_id,
            "animation": animation,
            "frame": frame,
        })

    def disconnect(self, connection_id: str):
        client = self.registry.get(connection_id)
        if client is None:
            return
        self.leave(connection_id)
        self.registry.remove(connection_id)
        logger.info(f"Cleaned up client data for {client.username}")
