"""
End-to-end tests: real ChatClient sessions talking to a real ChatServer over
loopback WebSockets.
"""

import asyncio

import pytest

from client import ChatClient, ClientState
from common import ChatMessage, LoginMessage, NameResponseMessage

from conftest import RecordingListener, wait_until


class Session:
    """A running client plus its listener and run() task."""

    def __init__(self, server, name=None):
        self.listener = RecordingListener()
        self.client = ChatClient(self.listener, f"127.0.0.1:{server.port}")
        if name is not None:
            self.client.update_name(name)
        self.task = asyncio.create_task(self.client.run())

    async def logged_in(self):
        await wait_until(lambda: self.client.is_logged_in)
        return self

    async def close(self):
        await self.client.stop()
        await asyncio.wait_for(self.task, timeout=5)

    def chats(self):
        return self.listener.received_of(ChatMessage)


async def sync(session):
    """Wait for a name list so earlier sends from this session were routed."""
    count = len(session.listener.received_of(NameResponseMessage))
    assert await session.client.list_names()
    await wait_until(
        lambda: len(session.listener.received_of(NameResponseMessage)) > count
    )
    return session.listener.received_of(NameResponseMessage)[-1]


@pytest.mark.asyncio
async def test_login_after_name_is_supplied(chat_server):
    session = Session(chat_server)
    await wait_until(
        lambda: session.listener.status_count("Waiting for a name ...") == 1
    )
    assert not session.client.is_logged_in

    session.client.update_name("alice")
    await session.logged_in()

    assert session.client.state is ClientState.LOGGED_IN
    assert "alice" in chat_server.roster
    await session.close()


@pytest.mark.asyncio
async def test_taken_name_then_new_name(chat_server):
    alice = await Session(chat_server, "alice").logged_in()
    other = Session(chat_server, "alice")

    await wait_until(
        lambda: "Login rejected: Name 'alice' is already taken"
        in other.listener.errors
    )
    assert not other.client.is_logged_in

    other.client.update_name("bob")
    await other.logged_in()

    assert await chat_server.roster.names() == ["alice", "bob"]
    await other.close()
    await alice.close()


@pytest.mark.asyncio
async def test_broadcast_reaches_every_other_client(chat_server):
    alice = await Session(chat_server, "alice").logged_in()
    others = [
        await Session(chat_server, name).logged_in()
        for name in ("bob", "carol", "dave")
    ]

    assert await alice.client.message_all("hello everyone")
    for session in others:
        await wait_until(lambda: session.chats())

    expected = ChatMessage(sender="alice", recipient=None, body="hello everyone")
    for session in others:
        assert session.chats() == [expected]

    await sync(alice)
    assert alice.chats() == []

    for session in [alice] + others:
        await session.close()


@pytest.mark.asyncio
async def test_private_message(chat_server):
    alice = await Session(chat_server, "alice").logged_in()
    bob = await Session(chat_server, "bob").logged_in()
    carol = await Session(chat_server, "carol").logged_in()

    assert await alice.client.message_one("bob", "just for you")
    await wait_until(lambda: bob.chats())

    assert bob.chats() == [
        ChatMessage(sender="alice", recipient="bob", body="just for you")
    ]
    await sync(alice)
    assert carol.chats() == []

    for session in (alice, bob, carol):
        await session.close()


@pytest.mark.asyncio
async def test_private_message_to_unknown_user(chat_server):
    alice = await Session(chat_server, "alice").logged_in()

    assert await alice.client.message_one("nobody", "hello?")
    await wait_until(
        lambda: "User 'nobody' is not logged in" in alice.listener.errors
    )

    assert alice.client.is_logged_in
    await alice.close()


@pytest.mark.asyncio
async def test_name_list(chat_server):
    alice = await Session(chat_server, "alice").logged_in()
    bob = await Session(chat_server, "bob").logged_in()

    response = await sync(bob)

    assert response.names == ("alice", "bob")
    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_logout_frees_name_for_reuse(chat_server):
    alice = await Session(chat_server, "alice").logged_in()

    await alice.close()

    assert alice.listener.sent_of(LoginMessage)[-1] == LoginMessage(
        name="alice", joining=False
    )
    await wait_until(lambda: "alice" not in chat_server.roster)

    again = await Session(chat_server, "alice").logged_in()
    assert await chat_server.roster.names() == ["alice"]
    await again.close()


@pytest.mark.asyncio
async def test_stop_twice_reports_once(chat_server):
    alice = await Session(chat_server, "alice").logged_in()

    await alice.client.stop()
    await alice.client.stop()
    await asyncio.wait_for(alice.task, timeout=5)

    assert alice.listener.status_count("Client stopped") == 1
    assert not any(
        e.startswith("Connection lost") for e in alice.listener.errors
    )
    assert alice.client.state is ClientState.DISCONNECTED


@pytest.mark.asyncio
async def test_concurrent_stops_log_out_once(chat_server):
    alice = await Session(chat_server, "alice").logged_in()

    await asyncio.gather(
        alice.client.stop(), alice.client.stop(), alice.client.stop()
    )
    await asyncio.wait_for(alice.task, timeout=5)

    assert alice.listener.sent_of(LoginMessage).count(
        LoginMessage(name="alice", joining=False)
    ) == 1
    assert alice.listener.status_count("Client stopped") == 1
    assert alice.client.is_running() is False
    await wait_until(lambda: "alice" not in chat_server.roster)


@pytest.mark.asyncio
async def test_server_shutdown_is_reported_to_client(chat_server):
    alice = await Session(chat_server, "alice").logged_in()

    await chat_server.stop()
    await asyncio.wait_for(alice.task, timeout=5)

    assert len(alice.listener.errors) == 1
    assert alice.listener.errors[0].startswith("Connection lost")
    assert alice.listener.sent_of(LoginMessage) == [
        LoginMessage(name="alice", joining=True)
    ]
    assert alice.client.state is ClientState.DISCONNECTED
