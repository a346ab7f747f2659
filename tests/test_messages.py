"""
Tests for Message Schemas and the Wire Codec
"""

import dataclasses
import json

import pytest

from common import (
    MESSAGE_TYPES,
    ChatMessage,
    ErrorMessage,
    LoginMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    NameRequestMessage,
    NameResponseMessage,
    ProtocolViolation,
    decode_message,
    encode_message,
)


def test_login_message_to_dict():
    """Test that LoginMessage serializes with its type tag."""
    message = LoginMessage(name="alice", joining=True)

    message_dict = message.to_dict()
    assert message_dict["type"] == "login"
    assert message_dict["data"]["name"] == "alice"
    assert message_dict["data"]["joining"] is True


def test_login_request_has_no_data():
    """Test that a message without fields omits the data key."""
    assert LoginRequestMessage().to_dict() == {"type": "login_request"}


def test_broadcast_chat_message_survives_the_wire():
    """Test that a broadcast keeps recipient=None after decoding."""
    message = ChatMessage(sender="alice", recipient=None, body="hello all")

    decoded = decode_message(encode_message(message))

    assert decoded == message
    assert decoded.is_broadcast


def test_name_response_decodes_names_as_tuple():
    """Test that the roster list becomes an immutable tuple."""
    frame = json.dumps(
        {"type": "name_response", "data": {"names": ["alice", "bob"]}}
    )

    decoded = decode_message(frame)

    assert isinstance(decoded, NameResponseMessage)
    assert decoded.names == ("alice", "bob")


def test_login_response_reason_is_optional():
    """Test that a login response without reason decodes."""
    frame = json.dumps({"type": "login_response", "data": {"accepted": True}})

    decoded = decode_message(frame)

    assert decoded == LoginResponseMessage(accepted=True)
    assert decoded.reason is None


def test_messages_are_immutable():
    """Test that messages cannot be modified once constructed."""
    message = ChatMessage(sender="alice", recipient="bob", body="hi")

    with pytest.raises(dataclasses.FrozenInstanceError):
        message.body = "changed"


def test_decode_bytes_frame():
    """Test that UTF-8 bytes frames are accepted."""
    frame = NameRequestMessage(sender="alice").to_json().encode("utf-8")

    assert decode_message(frame) == NameRequestMessage(sender="alice")


def test_message_directions():
    """Test which side is allowed to send each message."""
    assert LoginMessage.FROM_CLIENT and not LoginMessage.FROM_SERVER
    assert NameRequestMessage.FROM_CLIENT and not NameRequestMessage.FROM_SERVER
    assert ChatMessage.FROM_CLIENT and ChatMessage.FROM_SERVER
    for message_class in (
        LoginRequestMessage,
        LoginResponseMessage,
        NameResponseMessage,
        ErrorMessage,
    ):
        assert message_class.FROM_SERVER
        assert not message_class.FROM_CLIENT


def test_registry_covers_every_variant():
    """Test that every message type tag is registered once."""
    assert set(MESSAGE_TYPES) == {
        "login",
        "login_request",
        "login_response",
        "chat",
        "name_request",
        "name_response",
        "error",
    }


@pytest.mark.parametrize(
    "frame",
    [
        "not-json",
        json.dumps(["login"]),
        json.dumps({"type": "teleport", "data": {}}),
        json.dumps({"type": "login", "data": {"name": "alice"}}),
        json.dumps({"type": "login", "data": {"name": 7, "joining": True}}),
        json.dumps({"type": "chat", "data": "hello"}),
        json.dumps({"type": "name_response", "data": {"names": [1, 2]}}),
        b"\xff\xfe",
    ],
)
def test_decode_rejects_malformed_frames(frame):
    """Test that malformed frames raise ProtocolViolation."""
    with pytest.raises(ProtocolViolation):
        decode_message(frame)


def test_protocol_violation_message_names_the_type():
    """Test that unknown types are reported by name."""
    with pytest.raises(ProtocolViolation, match="teleport"):
        decode_message(json.dumps({"type": "teleport"}))
