"""
Shared fixtures and fakes for relay tests.
"""

import asyncio
import json

import pytest
import pytest_asyncio
from starlette.websockets import WebSocketState

from relay.session_manager import SessionManager


class FakeWebSocket:
    """Stand-in transport handle that records every frame sent to it."""

    def __init__(self):
        self.sent = []
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str):
        self.sent.append(data)

    @property
    def events(self):
        return [json.loads(frame) for frame in self.sent]

    def types(self):
        return [event["type"] for event in self.events]

    def clear(self):
        self.sent.clear()


class BrokenWebSocket(FakeWebSocket):
    async def send_text(self, data: str):
        raise ConnectionError("socket closed")


class YieldingWebSocket(FakeWebSocket):
    """Gives up the event loop on every send, like a real socket write."""

    async def send_text(self, data: str):
        await asyncio.sleep(0)
        self.sent.append(data)


class StalledWebSocket(FakeWebSocket):
    """A client that stopped reading: sends never complete."""

    def __init__(self):
        super().__init__()
        self.never = asyncio.Event()

    async def send_text(self, data: str):
        await self.never.wait()
        self.sent.append(data)


def assert_consistent(manager: SessionManager):
    """Session -> room pointers and room -> member lists agree, and no room is empty."""
    rooms = manager.rooms.rooms
    for code, room in rooms.items():
        assert room.code == code
        assert room.members, f"room {code} is empty"
        assert len(set(room.members)) == len(room.members)
        for session_id in room.members:
            assert manager.sessions[session_id].room_id == code

    for session in manager.sessions.values():
        memberships = [code for code, room in rooms.items() if session.id in room.members]
        if session.room_id is None:
            assert memberships == []
        else:
            assert memberships == [session.room_id]


@pytest_asyncio.fixture
async def manager():
    relay = SessionManager()
    yield relay
    await relay.close()


@pytest.fixture
def make_codes():
    """Build a code factory that replays the given codes in order."""
    def factory(*codes):
        it = iter(codes)
        return lambda: next(it)
    return factory
