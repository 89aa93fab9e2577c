import asyncio
import random
from typing import Callable, Dict, Mapping, Optional

from relay import protocol
from relay.config import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from relay.logging_config import get_logger
from relay.models import Room, Session

logger = get_logger(__name__)


def generate_room_code() -> str:
    return "".join(random.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))


class RoomManager:
    """
    Room lifecycle and message fan-out.

    Rooms hold session ids and sessions hold a room code; both are resolved
    through ``sessions`` (owned by the registry) and ``self.rooms``. Every
    public operation runs under ``lock`` and never awaits inside it: outbound
    frames are queued on each recipient's outbox in the order the state
    changed, and written by that session's own task.
    """

    def __init__(
        self,
        sessions: Mapping[str, Session],
        lock: Optional[asyncio.Lock] = None,
        code_factory: Callable[[], str] = generate_room_code,
    ):
        self.sessions = sessions
        self.lock = lock or asyncio.Lock()
        self.rooms: Dict[str, Room] = {}
        self._code_factory = code_factory

    def __len__(self):
        return len(self.rooms)

    def get_room(self, code: str) -> Optional[Room]:
        return self.rooms.get(code)

    def _new_code(self) -> str:
        code = self._code_factory()
        while code in self.rooms:
            logger.debug(f"Room code collision on {code}, regenerating")
            code = self._code_factory()
        return code

    async def create_room(self, session: Session) -> Optional[str]:
        async with self.lock:
            if session.id not in self.sessions:
                return None
            if session.room_id is not None:
                self.detach(session)

            code = self._new_code()
            self.rooms[code] = Room(code, session.id)
            session.room_id = code
            logger.info(f"Room {code} created by {session.id}")

            self._send(session, protocol.room_created(code))
            return code

    async def join_room(self, session: Session, room_id: str) -> bool:
        async with self.lock:
            if session.id not in self.sessions:
                return False
            room = self.rooms.get(room_id)
            if room is None:
                logger.debug(f"Join failed: room '{room_id}' not found ({session.id})")
                self._send(session, protocol.error(protocol.ROOM_NOT_FOUND))
                return False

            if session.room_id is not None and session.room_id != room_id:
                self.detach(session)

            if room.add(session.id):
                logger.info(f"{session.id} joined room {room_id} ({len(room)} members)")
            session.room_id = room_id

            self._send(session, protocol.room_joined(room_id))
            self.broadcast(room, protocol.user_joined(session.id))
            return True

    async def leave_room(self, session: Session) -> None:
        async with self.lock:
            self.detach(session)

    async def send_message(self, session: Session, text: str) -> None:
        async with self.lock:
            if session.id not in self.sessions:
                return
            room = self.rooms.get(session.room_id) if session.room_id else None
            if room is None:
                return
            self.broadcast(room, protocol.chat(session.id, text))

    def detach(self, session: Session) -> None:
        """Leave the current room. Caller must hold ``lock``."""
        code = session.room_id
        if code is None:
            return
        room = self.rooms.get(code)
        session.room_id = None
        if room is None:
            return

        room.remove(session.id)
        logger.info(f"{session.id} left room {code} ({len(room)} members)")
        self.broadcast(room, protocol.user_left(session.id))

        if room.is_empty():
            del self.rooms[code]
            logger.info(f"Room {code} closed")

    def broadcast(self, room: Room, message: str) -> int:
        """Queue ``message`` for every member of ``room``; returns the number queued.

        Must be called with the lock held. Nothing here waits on a socket:
        each member's writer task does the actual send, and a failing
        recipient is logged there without affecting the rest.
        """
        queued = 0
        for session_id in list(room.members):
            session = self.sessions.get(session_id)
            if session is None:
                continue
            if self._send(session, message):
                queued += 1
        return queued

    def _send(self, session: Session, message: str) -> bool:
        if not session.enqueue(message):
            logger.debug(f"Skipping send to closed session {session.id}")
            return False
        return True
