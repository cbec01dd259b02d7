class PresenceError(Exception):
    """Base class for errors raised by the presence core."""


class RoomNotFound(PresenceError):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} does not exist")
        self.room_id = room_id


class RoomFull(PresenceError):
    def __init__(self, room_id: str, max_players: int):
        super().__init__(f"Room {room_id} is full ({max_players} players)")
        self.room_id = room_id
        self.max_players = max_players


class UnknownIdentity(PresenceError):
    """Raised for events that reference a connection no longer in the registry."""

    def __init__(self, connection_id: str):
        super().__init__(f"Unknown connection {connection_id}")
        self.connection_id = connection_id


class InvalidMessage(PresenceError):
    pass
