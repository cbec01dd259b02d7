import time
from datetime import datetime
from typing import List, Optional

from broadcaster import MemberRecord, Room, RoomBroadcaster
from registry import ConnectionRegistry, Position
from schemas.events import PositionPayload
from schemas.status import (
    HealthConnections,
    HealthResponse,
    PlayerInfo,
    RoomCount,
    RoomDetails,
    RoomListing,
    RoomRoster,
    ServerStatus,
    SocketInfo,
    SocketList,
)
from transport import Transport


def _position(position: Position) -> PositionPayload:
    return PositionPayload(x=position.x, y=position.y)


def _player(member: MemberRecord) -> PlayerInfo:
    return PlayerInfo(
        id=member.id,
        session_id=member.session_id,
        username=member.username,
        position=_position(member.position),
        frame=member.frame,
        joined_at=member.joined_at,
    )


class StatusReporter:
    """Read-only snapshots of registry and room state.

    Everything here is a plain synchronous read; nothing mutates core state.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        broadcaster: RoomBroadcaster,
        transport: Optional[Transport] = None,
        started_at: Optional[float] = None,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.transport = transport or broadcaster.transport
        self.started_at = time.monotonic() if started_at is None else started_at

    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def connection_count(self) -> int:
        return len(self.registry)

    def _roster(self, room: Room) -> RoomRoster:
        return RoomRoster(
            room_id=room.id,
            player_count=len(room),
            players=[_player(member) for member in room.members.values()],
        )

    def _distribution(self) -> List[RoomCount]:
        return [
            RoomCount(room_id=room.id, player_count=len(room))
            for room in self.broadcaster.rooms.values()
        ]

    def server_status(self) -> ServerStatus:
        return ServerStatus(
            connected_clients=self.connection_count(),
            rooms=[self._roster(room) for room in self.broadcaster.rooms.values()],
            uptime=self.uptime(),
            timestamp=datetime.now().isoformat(),
        )

    def room_list(self) -> List[RoomListing]:
        max_players = self.broadcaster.max_players
        listings = []
        for room in self.broadcaster.rooms.values():
            roster = self._roster(room)
            listings.append(RoomListing(
                **roster.model_dump(),
                max_players=max_players,
                is_full=len(room) >= max_players,
            ))
        return listings

    def room_details(self, room_id: str) -> RoomDetails:
        """Roster of one room; raises RoomNotFound for an unconfigured id."""
        room = self.broadcaster.room(room_id)
        return RoomDetails(**self._roster(room).model_dump(), is_active=len(room) > 0)

    def socket_list(self) -> SocketList:
        sockets = [
            SocketInfo(
                client_id=client.id,
                session_id=client.session_id,
                username=client.username,
                current_room=client.current_room,
                position=_position(client.position),
                connected=self.transport.is_open(client.id),
                connected_at=client.connected_at,
                last_activity=client.last_activity,
            )
            for client in self.registry
        ]
        return SocketList(
            total_sockets=len(sockets),
            sockets=sockets,
            room_distribution=self._distribution(),
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            uptime=self.uptime(),
            timestamp=datetime.now().isoformat(),
            connections=HealthConnections(
                total=self.connection_count(),
                rooms=self._distribution(),
            ),
        )
