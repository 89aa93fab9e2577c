"""
Wire format for the relay: every frame is a JSON object ``{"type", "payload"}``.

Inbound types are ``create``, ``join`` and ``chat``. Anything that does not
decode into that shape is reported as ``None`` and dropped by the caller.
"""
import json
from typing import Optional, Tuple

CREATE = "create"
JOIN = "join"
CHAT = "chat"

ROOM_CREATED = "roomCreated"
ROOM_JOINED = "roomJoined"
USER_JOINED = "userJoined"
USER_LEFT = "userLeft"
ERROR = "error"

ROOM_NOT_FOUND = "Room not found"

# Payload fields that must be present (as strings) for each inbound type
REQUIRED_FIELDS = {
    CREATE: (),
    JOIN: ("roomId",),
    CHAT: ("message",),
}


def decode(raw) -> Optional[Tuple[str, dict]]:
    """Return ``(type, payload)`` or ``None`` when the frame is malformed.

    Unknown types with a well-formed envelope are returned as-is so the router
    can tell them apart from undecodable input.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError):
        return None

    if not isinstance(msg, dict):
        return None
    msg_type = msg.get("type")
    if not isinstance(msg_type, str):
        return None

    payload = msg.get("payload")
    if not isinstance(payload, dict):
        if REQUIRED_FIELDS.get(msg_type):
            return None
        payload = {}

    for field in REQUIRED_FIELDS.get(msg_type, ()):
        if not isinstance(payload.get(field), str):
            return None
    return msg_type, payload


def encode(event_type: str, **payload) -> str:
    return json.dumps({"type": event_type, "payload": payload})


def room_created(room_id: str) -> str:
    return encode(ROOM_CREATED, roomId=room_id)


def room_joined(room_id: str) -> str:
    return encode(ROOM_JOINED, roomId=room_id)


def user_joined(user_id: str) -> str:
    return encode(USER_JOINED, userId=user_id)


def user_left(user_id: str) -> str:
    return encode(USER_LEFT, userId=user_id)


def chat(user_id: str, message: str) -> str:
    return encode(CHAT, userId=user_id, message=message)


def error(message: str) -> str:
    return encode(ERROR, message=message)
