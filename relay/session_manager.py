import asyncio
import uuid
from typing import Any, Callable, Dict, Optional

from relay import protocol
from relay.logging_config import get_logger
from relay.models import Session
from relay.packet_router import PacketRouter
from relay.room_manager import RoomManager, generate_room_code

logger = get_logger(__name__)


class SessionManager:
    """
    Registry of live connections.

    Owns the session map and the lock shared with the room manager; inbound
    frames are decoded here and handed to the packet router. Nothing is sent
    from this class directly.
    """

    def __init__(self, code_factory: Optional[Callable[[], str]] = None):
        self.sessions: Dict[str, Session] = {}
        self.lock = asyncio.Lock()
        self.rooms = RoomManager(
            self.sessions, self.lock, code_factory=code_factory or generate_room_code
        )
        self.router = PacketRouter(self.rooms)
        self.dropped_frames = 0

    async def connect(self, websocket: Any) -> Session:
        session = Session(str(uuid.uuid4()), websocket)
        session.start()
        async with self.lock:
            self.sessions[session.id] = session
        logger.info(f"Session connected: {session.id} ({len(self.sessions)} active)")
        return session

    async def handle_message(self, session: Session, raw) -> None:
        if session.id not in self.sessions:
            return

        decoded = protocol.decode(raw)
        if decoded is None:
            self.dropped_frames += 1
            logger.debug(f"Dropping malformed frame from {session.id}")
            return

        msg_type, payload = decoded
        logger.debug(f"[{session.id}] {msg_type}")
        if not await self.router.route(session, msg_type, payload):
            self.dropped_frames += 1

    async def disconnect(self, session: Session) -> None:
        async with self.lock:
            if self.sessions.pop(session.id, None) is None:
                return
            self.rooms.detach(session)
        # Cancelling the writer interrupts a send stuck on a dead socket
        await session.close()
        logger.info(f"Session disconnected: {session.id} ({len(self.sessions)} active)")

    async def flush(self) -> None:
        """Wait for every registered session's queued frames to be written."""
        for session in list(self.sessions.values()):
            await session.flush()

    async def close(self) -> None:
        for session in list(self.sessions.values()):
            await self.disconnect(session)

    def stats(self) -> dict:
        return {
            "active_sessions": len(self.sessions),
            "active_rooms": len(self.rooms),
            "dropped_frames": self.dropped_frames,
        }
