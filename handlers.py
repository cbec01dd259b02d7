import json
from typing import Any

from pydantic import ValidationError

from broadcaster import RoomBroadcaster
from exceptions import InvalidMessage, RoomFull, RoomNotFound, UnknownIdentity
from logging_config import get_logger
from registry import ConnectionRegistry, Position
from schemas.events import (
    INBOUND_MESSAGES,
    JoinRoomMessage,
    LeaveRoomMessage,
    PingMessage,
    PlayerAnimationMessage,
    PlayerMoveMessage,
)
from transport import Transport

logger = get_logger(__name__)


class EventDispatcher:
    """Routes inbound client messages to the registry and room broadcaster."""

    def __init__(self, registry: ConnectionRegistry, broadcaster: RoomBroadcaster, transport: Transport):
        self.registry = registry
        self.broadcaster = broadcaster
        self.transport = transport

    def greet(self, connection_id: str):
        client = self.registry.lookup(connection_id)
        self.transport.send(connection_id, {
            "type": "connected",
            "clientId": client.id,
            "username": client.username,
            "message": "Connected to multiplayer server",
            "availableRooms": self.broadcaster.room_ids,
        })
        logger.info(f"Client connected: {client.username} (session {client.session_id})")

    def _error(self, connection_id: str, message: str):
        self.transport.send(connection_id, {"type": "error", "message": message})

    def handle_text(self, connection_id: str, data: str):
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"Non-JSON frame from connection {connection_id}")
            self._error(connection_id, "Invalid JSON")
            return
        self.handle(connection_id, message)

    def handle(self, connection_id: str, message: Any):
        try:
            self._dispatch(connection_id, message)
        except RoomNotFound as e:
            logger.warning(f"{connection_id}: {e}")
            self._error(connection_id, "Room does not exist")
        except RoomFull as e:
            logger.info(f"{connection_id}: {e}")
            self._error(connection_id, "Room is full")
        except InvalidMessage as e:
            logger.debug(f"Rejected message from {connection_id}: {e}")
            self._error(connection_id, str(e))
        except UnknownIdentity:
            # Late event for a connection that has already been cleaned up
            logger.debug(f"Ignoring event for unknown connection {connection_id}")

    def _dispatch(self, connection_id: str, message: Any):
        if not isinstance(message, dict):
            raise InvalidMessage("Message must be a JSON object")

        event_type = message.get("type")
        model = INBOUND_MESSAGES.get(event_type) if isinstance(event_type, str) else None
        if model is None:
            raise InvalidMessage(f"Unknown message type: {event_type}")

        try:
            payload = model.model_validate(message)
        except ValidationError as e:
            raise InvalidMessage(f"Invalid {event_type} payload: {e.error_count()} error(s)") from e

        if connection_id not in self.registry:
            raise UnknownIdentity(connection_id)

        logger.debug(f"Received {event_type} from connection {connection_id}")
        getattr(self, f"on_{event_type}")(connection_id, payload)

    def on_join_room(self, connection_id: str, payload: JoinRoomMessage):
        logger.debug(f"{connection_id} attempting to join room: {payload.room_id}")
        # Validate before renaming so a rejected join leaves no trace
        self.broadcaster.check_join(connection_id, payload.room_id)

        username = payload.username.strip() if payload.username else ""
        if username:
            self.registry.rename(connection_id, username)

        position = Position(payload.position.x, payload.position.y) if payload.position else None
        self.broadcaster.join(connection_id, payload.room_id, position)

    def on_leave_room(self, connection_id: str, payload: LeaveRoomMessage):
        self.broadcaster.leave(connection_id)

    def on_player_move(self, connection_id: str, payload: PlayerMoveMessage):
        position = Position(payload.position.x, payload.position.y)
        self.broadcaster.move(connection_id, position, payload.frame)

    def on_player_animation(self, connection_id: str, payload: PlayerAnimationMessage):
        self.broadcaster.animate(connection_id, payload.animation, payload.frame)

    def on_ping(self, connection_id: str, payload: PingMessage):
        self.registry.touch(connection_id)
        self.transport.send(connection_id, {"type": "pong"})

    def disconnect(self, connection_id: str, reason: str = ""):
        client = self.registry.get(connection_id)
        if client is None:
            return
        logger.info(f"Client disconnected: {client.username} ({reason})")
        self.broadcaster.disconnect(connection_id)
