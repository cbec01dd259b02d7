import pytest

from broadcaster import RoomBroadcaster
from handlers import EventDispatcher
from registry import ConnectionRegistry
from transport import Transport

ROOMS = ["room1", "room2"]


class RecordingTransport(Transport):
    """Keeps every outbound message in send order; broadcast reaches all registered connections."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.sent = []
        self.closed = set()

    def send(self, connection_id, message):
        self.sent.append((connection_id, message))

    def broadcast(self, message):
        for connection_id in self.registry.ids():
            self.send(connection_id, message)

    def is_open(self, connection_id):
        return connection_id not in self.closed

    def received(self, connection_id):
        return [message for target, message in self.sent if target == connection_id]

    def types(self, connection_id):
        return [message["type"] for message in self.received(connection_id)]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def transport(registry):
    return RecordingTransport(registry)


@pytest.fixture
def broadcaster(registry, transport):
    return RoomBroadcaster(registry, transport, ROOMS, max_players=2, move_log_sample_rate=1.0)


@pytest.fixture
def dispatcher(registry, broadcaster, transport):
    return EventDispatcher(registry, broadcaster, transport)
