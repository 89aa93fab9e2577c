import json

from relay import protocol


def test_decode_create_without_payload():
    assert protocol.decode(json.dumps({"type": "create"})) == ("create", {})


def test_decode_create_ignores_odd_payload():
    assert protocol.decode(json.dumps({"type": "create", "payload": "x"})) == ("create", {})


def test_decode_join_and_chat():
    raw = json.dumps({"type": "join", "payload": {"roomId": "ABC123"}})
    assert protocol.decode(raw) == ("join", {"roomId": "ABC123"})

    raw = json.dumps({"type": "chat", "payload": {"message": "hi"}})
    assert protocol.decode(raw) == ("chat", {"message": "hi"})


def test_decode_rejects_undecodable_frames():
    assert protocol.decode("not json") is None
    assert protocol.decode("") is None
    assert protocol.decode(None) is None
    assert protocol.decode(b"\xff\xfe") is None


def test_decode_rejects_wrong_envelope():
    assert protocol.decode(json.dumps([1, 2, 3])) is None
    assert protocol.decode(json.dumps({"payload": {}})) is None
    assert protocol.decode(json.dumps({"type": 7})) is None


def test_decode_rejects_missing_required_fields():
    assert protocol.decode(json.dumps({"type": "join"})) is None
    assert protocol.decode(json.dumps({"type": "join", "payload": {}})) is None
    assert protocol.decode(json.dumps({"type": "join", "payload": {"roomId": 5}})) is None
    assert protocol.decode(json.dumps({"type": "chat", "payload": {"text": "hi"}})) is None
    assert protocol.decode(json.dumps({"type": "chat", "payload": "hi"})) is None


def test_decode_passes_unknown_types_through():
    assert protocol.decode(json.dumps({"type": "dance", "payload": {"a": 1}})) == ("dance", {"a": 1})


def test_decode_accepts_utf8_bytes():
    raw = json.dumps({"type": "chat", "payload": {"message": "héllo"}}).encode("utf-8")
    assert protocol.decode(raw) == ("chat", {"message": "héllo"})


def test_outbound_shapes():
    assert json.loads(protocol.room_created("ABC123")) == {"type": "roomCreated", "payload": {"roomId": "ABC123"}}
    assert json.loads(protocol.room_joined("ABC123")) == {"type": "roomJoined", "payload": {"roomId": "ABC123"}}
    assert json.loads(protocol.user_joined("u1")) == {"type": "userJoined", "payload": {"userId": "u1"}}
    assert json.loads(protocol.user_left("u1")) == {"type": "userLeft", "payload": {"userId": "u1"}}
    assert json.loads(protocol.chat("u1", "hi")) == {"type": "chat", "payload": {"userId": "u1", "message": "hi"}}
    assert json.loads(protocol.error("Room not found")) == {"type": "error", "payload": {"message": "Room not found"}}
