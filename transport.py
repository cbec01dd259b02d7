import asyncio
import json
from typing import Dict, Iterable, Optional

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class Transport:
    """Outbound primitives the presence core emits through.

    Emission is fire-and-forget: implementations must not block and must not
    raise for recipients that have already gone away.
    """

    def send(self, connection_id: str, message: dict):
        raise NotImplementedError

    def send_many(self, connection_ids: Iterable[str], message: dict):
        for connection_id in connection_ids:
            self.send(connection_id, message)

    def broadcast(self, message: dict):
        raise NotImplementedError

    def is_open(self, connection_id: str) -> bool:
        return True


class WebSocketHub(Transport):
    """Per-connection outbound queues drained by one writer task each.

    The core runs synchronously inside the receive loop, so it only ever
    enqueues; the actual socket writes happen in pump().
    """

    def __init__(self):
        # Format: {connection_id: queue of outbound message dicts, None = stop}
        self._outboxes: Dict[str, "asyncio.Queue[Optional[dict]]"] = {}

    def open(self, connection_id: str) -> "asyncio.Queue[Optional[dict]]":
        queue: "asyncio.Queue[Optional[dict]]" = asyncio.Queue()
        self._outboxes[connection_id] = queue
        logger.debug(f"Opened outbox for {connection_id} (open outboxes: {len(self._outboxes)})")
        return queue

    def close(self, connection_id: str):
        queue = self._outboxes.pop(connection_id, None)
        if queue is not None:
            # Messages queued before this still go out; the writer stops after them
            queue.put_nowait(None)
            logger.debug(f"Closed outbox for {connection_id}")

    def send(self, connection_id: str, message: dict):
        queue = self._outboxes.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {message.get('type')} for closed connection {connection_id}")
            return
        queue.put_nowait(message)

    def broadcast(self, message: dict):
        for connection_id in list(self._outboxes):
            self.send(connection_id, message)

    def __len__(self) -> int:
        return len(self._outboxes)

    def is_open(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    async def pump(self, connection_id: str, queue: "asyncio.Queue[Optional[dict]]", websocket: WebSocket):
        """Write queued messages to the socket until the outbox is closed or a send fails."""
        sent = 0
        while True:
            message = await queue.get()
            if message is None:
                break
            try:
                await websocket.send_text(json.dumps(message))
                sent += 1
            except Exception as e:
                logger.warning(f"Error sending {message.get('type')} to connection {connection_id}: {e}")
                break
        logger.debug(f"Writer for {connection_id} stopped after {sent} messages")
