from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class PositionPayload(BaseModel):
    x: float
    y: float


class JoinRoomMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId")
    username: Optional[str] = None
    position: Optional[PositionPayload] = None

class LeaveRoomMessage(BaseModel):
    pass

class PlayerMoveMessage(BaseModel):
    position: PositionPayload
    frame: int = 0

class PlayerAnimationMessage(BaseModel):
    animation: str
    frame: int = 0

class PingMessage(BaseModel):
    pass


# Inbound "type" -> payload model
INBOUND_MESSAGES = {
    "join_room": JoinRoomMessage,
    "leave_room": LeaveRoomMessage,
    "player_move": PlayerMoveMessage,
    "player_animation": PlayerAnimationMessage,
    "ping": PingMessage,
}
