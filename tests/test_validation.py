"""
Tests for Server Utilities

Tests for name validation, message content validation and broadcasting.
"""

import pytest

from common import ChatMessage
from server.utils import (
    MAX_MESSAGE_LENGTH,
    broadcast_message,
    is_valid_name,
    validate_message_content,
)

from conftest import FakeChannel


@pytest.mark.parametrize(
    "name", ["alice", "Bob_2", "x", "night-owl", "a" * 24]
)
def test_valid_names(name):
    """Test names that match the name rule."""
    assert is_valid_name(name)


@pytest.mark.parametrize(
    "name", ["", " ", "alice smith", "bob!", "a" * 25, "alice\n", None]
)
def test_invalid_names(name):
    """Test names that break the name rule."""
    assert not is_valid_name(name)


def test_validate_message_content_accepts_text():
    """Test that normal text is valid."""
    assert validate_message_content("hello") == (True, None)


def test_validate_message_content_rejects_empty():
    """Test that empty or blank text is rejected."""
    is_valid, error = validate_message_content("   ")
    assert not is_valid
    assert "empty" in error


def test_validate_message_content_rejects_long_text():
    """Test that overly long text is rejected."""
    is_valid, error = validate_message_content("x" * (MAX_MESSAGE_LENGTH + 1))
    assert not is_valid
    assert str(MAX_MESSAGE_LENGTH) in error


@pytest.mark.asyncio
async def test_broadcast_skips_excluded_and_broken_channels():
    """Test that a broken recipient does not stop the fan-out."""
    alice, bob, carol = FakeChannel("alice"), FakeChannel("bob"), FakeChannel("carol")
    await bob.close()
    message = ChatMessage(sender="alice", recipient=None, body="hi")

    delivered = await broadcast_message(
        [("alice", alice), ("bob", bob), ("carol", carol)],
        message,
        exclude_name="alice",
    )

    assert delivered == 1
    assert alice.sent == []
    assert carol.sent == [message]
