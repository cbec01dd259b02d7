from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from broadcaster import RoomBroadcaster
from handlers import EventDispatcher
from registry import ConnectionRegistry
from status import StatusReporter
from transport import WebSocketHub
import asyncio
import random
import string
from typing import Iterable, Optional
from constants import ENFORCE_ROOM_CAPACITY, LOG_FILE, LOG_LEVEL, MAX_PLAYERS_PER_ROOM, MOVE_LOG_SAMPLE_RATE, ROOMS
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def generate_random_slug(length: int = 20) -> str:
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


def create_app(
    rooms: Iterable[str] = ROOMS,
    max_players: int = MAX_PLAYERS_PER_ROOM,
    enforce_capacity: bool = ENFORCE_ROOM_CAPACITY,
    move_log_sample_rate: float = MOVE_LOG_SAMPLE_RATE,
    started_at: Optional[float] = None,
) -> FastAPI:
    """Build the app with its own registry, rooms and socket hub.

    State lives on app.state so separate apps (e.g. one per test) never share rooms.
    """
    registry = ConnectionRegistry()
    hub = WebSocketHub()
    broadcaster = RoomBroadcaster(
        registry,
        hub,
        rooms,
        max_players=max_players,
        enforce_capacity=enforce_capacity,
        move_log_sample_rate=move_log_sample_rate,
    )
    dispatcher = EventDispatcher(registry, broadcaster, hub)
    status = StatusReporter(registry, broadcaster, hub, started_at=started_at)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Presence server ready, available rooms: {', '.join(broadcaster.room_ids)}")
        yield
        health = status.health()
        logger.info(f"Presence server stopping after {health.uptime:.0f}s with {health.connections.total} connections")

    app = FastAPI(lifespan=lifespan)
    app.state.registry = registry
    app.state.hub = hub
    app.state.broadcaster = broadcaster
    app.state.dispatcher = dispatcher
    app.state.status = status

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Presence channel: one connection from connect to disconnect.

        Inbound frames are JSON objects with a "type" field; outbound events use
        the same shape and are written by a per-connection writer task.
        """
        await websocket.accept()
        session_id = generate_random_slug(20)
        connection_id = registry.register(session_id)
        outbox = hub.open(connection_id)
        writer = asyncio.create_task(hub.pump(connection_id, outbox, websocket))
        logger.debug(f"WebSocket accepted for connection {connection_id} (session {session_id})")

        dispatcher.greet(connection_id)

        reason = "transport close"
        message_count = 0
        try:
            while True:
                try:
                    data = await websocket.receive_text()
                except WebSocketDisconnect as e:
                    reason = f"client disconnect ({e.code})"
                    break
                message_count += 1
                dispatcher.handle_text(connection_id, data)
        except Exception as e:
            reason = "server error"
            logger.error(f"Error receiving message from connection {connection_id}: {e}", exc_info=True)
        finally:
            # Close the outbox first so leave notifications skip the departing socket
            hub.close(connection_id)
            dispatcher.disconnect(connection_id, reason)
            await writer
            logger.debug(f"Connection {connection_id} closed after {message_count} messages")
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
