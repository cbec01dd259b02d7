from pydantic import BaseModel
from typing import Optional

from schemas.events import PositionPayload


class PlayerInfo(BaseModel):
    id: str
    session_id: str
    username: str
    position: PositionPayload
    frame: int
    joined_at: str

class RoomCount(BaseModel):
    room_id: str
    player_count: int

class RoomRoster(RoomCount):
    players: list[PlayerInfo]

class RoomListing(RoomRoster):
    max_players: int
    is_full: bool

class RoomDetails(RoomRoster):
    is_active: bool

class ServerStatus(BaseModel):
    connected_clients: int
    rooms: list[RoomRoster]
    uptime: float
    timestamp: str

class SocketInfo(BaseModel):
    client_id: str
    session_id: str
    username: str
    current_room: Optional[str]
    position: PositionPayload
    connected: bool
    connected_at: str
    last_activity: str

class SocketList(BaseModel):
    total_sockets: int
    sockets: list[SocketInfo]
    room_distribution: list[RoomCount]

class HealthConnections(BaseModel):
    total: int
    rooms: list[RoomCount]

class HealthResponse(BaseModel):
    status: str
    uptime: float
    timestamp: str
    connections: HealthConnections
