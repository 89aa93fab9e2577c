from relay import protocol
from relay.logging_config import get_logger
from relay.models import Session
from relay.room_manager import RoomManager

logger = get_logger(__name__)


class PacketRouter:
    def __init__(self, room_manager: RoomManager):
        self.rooms = room_manager

    async def route(self, session: Session, msg_type: str, payload: dict) -> bool:
        """Dispatch a decoded inbound message. Returns False for unknown types."""
        if msg_type == protocol.CREATE:
            await self.rooms.create_room(session)
        elif msg_type == protocol.JOIN:
            await self.rooms.join_room(session, payload["roomId"])
        elif msg_type == protocol.CHAT:
            await self.rooms.send_message(session, payload["message"])
        else:
            logger.debug(f"Ignoring unknown message type '{msg_type}' from {session.id}")
            return False
        return True
