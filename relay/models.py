import asyncio
from typing import Any, List, Optional

from starlette.websockets import WebSocketState

from relay.logging_config import get_logger

logger = get_logger(__name__)


class Session:
    """
    One connected client. ``websocket`` is any object with ``async send_text``.

    Outbound frames go through ``outbox`` and are written by a per-session
    task, so a client that stops reading only holds up its own deliveries.
    """

    def __init__(self, session_id: str, websocket: Any):
        self.id = session_id
        self.websocket = websocket
        self.room_id: Optional[str] = None
        self.outbox: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None

    def is_open(self) -> bool:
        # Fakes and other transports without Starlette state are assumed open
        for attr in ("application_state", "client_state"):
            if getattr(self.websocket, attr, None) == WebSocketState.DISCONNECTED:
                return False
        return True

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    def enqueue(self, message: str) -> bool:
        if self._writer is None or self._writer.done() or not self.is_open():
            return False
        self.outbox.put_nowait(message)
        return True

    async def _drain(self):
        while True:
            message = await self.outbox.get()
            try:
                if self.is_open():
                    await self.websocket.send_text(message)
            except Exception as e:
                logger.warning(f"Failed to deliver to {self.id}: {e}")
            finally:
                self.outbox.task_done()

    async def flush(self) -> None:
        """Wait until everything queued so far has been written (or dropped)."""
        if self._writer is not None and not self._writer.done():
            await self.outbox.join()

    async def close(self) -> None:
        """Stop the writer; frames still queued are discarded."""
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass

    def __repr__(self):
        return f"Session(id={self.id!r}, room_id={self.room_id!r})"


class Room:
    def __init__(self, code: str, creator_id: str):
        self.code = code
        # Session ids in join order; resolved through the session registry
        self.members: List[str] = [creator_id]

    def add(self, session_id: str) -> bool:
        if session_id in self.members:
            return False
        self.members.append(session_id)
        return True

    def remove(self, session_id: str) -> bool:
        if session_id not in self.members:
            return False
        self.members.remove(session_id)
        return True

    def is_empty(self) -> bool:
        return not self.members

    def __len__(self):
        return len(self.members)

    def __repr__(self):
        return f"Room(code={self.code!r}, members={len(self.members)})"
