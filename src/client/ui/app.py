"""
Chat Application UI

Main application class for the relay chat terminal UI.
Built using the Textual framework.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import (
    Container,
    Horizontal,
    Vertical,
    ScrollableContainer,
)
from textual.css.query import NoMatches
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
)

from common.listener import ChatListener
from common.schemas import (
    BaseMessage,
    ChatMessage,
    LoginRequestMessage,
    LoginResponseMessage,
    NameResponseMessage,
)

from ..chat_client import ChatClient

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Type to talk to everyone. /msg <name> <text> sends privately, "
    "/names refreshes the member list, /quit disconnects."
)


def parse_input(text: str) -> Tuple[str, Optional[str], str]:
    """
    Parse one line typed into the message box.

    Returns:
        tuple: (command, recipient, body) where command is one of
            "all", "msg", "names" or "quit"

    Raises:
        ValueError: If a command is unknown or malformed
    """
    text = text.strip()
    if not text.startswith("/"):
        return "all", None, text

    command, _, rest = text[1:].partition(" ")
    command = command.lower()

    if command == "msg":
        recipient, _, body = rest.strip().partition(" ")
        if not recipient or not body.strip():
            raise ValueError("Usage: /msg <name> <text>")
        return "msg", recipient, body.strip()
    if command in ("names", "quit"):
        return command, None, ""
    raise ValueError(f"Unknown command: /{command}")


class MessageDisplay(Static):
    """Widget for displaying a single chat message."""

    def __init__(
        self,
        sender: str,
        body: str,
        recipient: Optional[str] = None,
        is_own_message: bool = False,
    ) -> None:
        """Initialize message display."""
        super().__init__()
        self.msg_sender = sender
        self.msg_body = body
        self.msg_recipient = recipient
        self.is_own_message = is_own_message

    @property
    def is_private(self) -> bool:
        return self.msg_recipient is not None

    def compose(self) -> ComposeResult:
        """Compose the message display."""
        prefix = "You" if self.is_own_message else self.msg_sender
        if self.is_private and self.is_own_message:
            prefix = f"You -> {self.msg_recipient}"
        elif self.is_private:
            prefix = f"{self.msg_sender} (private)"
        yield Static(
            f"[bold cyan]{escape(prefix)}[/]\n{escape(self.msg_body)}",
            classes="message-content",
        )


class SystemMessage(Static):
    """Widget for displaying status lines and notifications."""

    def __init__(self, message: str, message_type: str = "info") -> None:
        """Initialize system message display."""
        self.message = message
        self.message_type = message_type
        super().__init__()

    def compose(self) -> ComposeResult:
        """Compose the system message."""
        color = {
            "info": "blue",
            "warning": "yellow",
            "error": "red",
            "success": "green",
        }.get(self.message_type, "white")
        yield Static(
            f"[{color}]{escape(self.message)}[/]", classes="system-message"
        )


class ConnectionScreen(Container):
    """Screen for choosing a name and connecting to a server."""

    def compose(self) -> ComposeResult:
        """Compose the connection screen."""
        yield Static(
            "[bold blue]Relay Chat[/]",
            id="title",
            classes="screen-title",
        )
        yield Static("Enter your details to connect:", classes="subtitle")
        with Vertical(id="connection-form"):
            yield Label("Name:")
            yield Input(placeholder="Enter your name...", id="username-input")
            yield Label("Server Address:")
            yield Input(
                placeholder="host:port (e.g., localhost:8080)",
                id="server-address-input",
            )
            yield Button("Connect", id="connect-btn", variant="primary")
        yield Static("", id="connection-status", classes="status-message")


class ChatScreen(Container):
    """Screen for chatting."""

    def compose(self) -> ComposeResult:
        """Compose the chat screen."""
        with Horizontal(id="chat-container"):
            with Vertical(id="chat-main"):
                yield Static("", id="chat-header", classes="chat-header")
                yield ScrollableContainer(id="messages-container")
                with Horizontal(id="message-input-row"):
                    yield Input(
                        placeholder="Type a message...",
                        id="message-input",
                    )
                    yield Button("Send", id="send-btn", variant="primary")
            with Vertical(id="sidebar"):
                yield Static("[bold]Online[/]", classes="sidebar-header")
                yield ListView(id="member-list")
                yield Button("Refresh", id="refresh-btn", variant="default")
                yield Button(
                    "Disconnect", id="disconnect-btn", variant="warning"
                )


class AppListener(ChatListener):
    """Forwards client callbacks to the app's message queue."""

    def __init__(self, app: "ChatApp") -> None:
        self.app = app

    def stat(self, text: str, is_error: bool) -> None:
        super().stat(text, is_error)
        self.app.call_later(self.app.show_client_status, text, is_error)

    def message_sent(self, message: BaseMessage) -> None:
        super().message_sent(message)
        self.app.call_later(self.app.show_message_sent, message)

    def message_received(self, message: BaseMessage) -> None:
        super().message_received(message)
        self.app.call_later(self.app.show_message_received, message)


class ChatApp(App):
    """Main chat application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    .screen-title {
        text-align: center;
        padding: 1 0;
        text-style: bold;
    }

    .subtitle {
        text-align: center;
        padding: 0 0 1 0;
    }

    #connection-form {
        align: center middle;
        padding: 2;
        width: 60;
        height: auto;
    }

    #connection-form Input {
        margin: 0 0 1 0;
    }

    #connection-form Button {
        margin: 1 0 0 0;
        width: 100%;
    }

    .status-message {
        text-align: center;
        padding: 1;
    }

    ConnectionScreen {
        align: center middle;
    }

    ChatScreen {
        height: 100%;
    }

    #chat-container {
        height: 100%;
    }

    #chat-main {
        width: 3fr;
    }

    #sidebar {
        width: 1fr;
        border-left: solid $primary;
        padding: 0 1;
    }

    .sidebar-header {
        padding: 1 0;
        text-align: center;
    }

    #member-list {
        height: 1fr;
    }

    #sidebar Button {
        margin: 1 0 0 0;
        width: 100%;
    }

    .chat-header {
        padding: 1;
        background: $surface;
        text-align: center;
    }

    #messages-container {
        height: 1fr;
        padding: 1;
    }

    #message-input-row {
        height: 3;
        padding: 0 1;
    }

    #message-input {
        width: 1fr;
    }

    #send-btn {
        margin: 0 0 0 1;
    }

    MessageDisplay {
        padding: 0 0 1 0;
    }

    .message-content {
        padding: 0 1;
    }

    .own-message .message-content {
        text-align: right;
    }

    .private-message .message-content {
        color: $accent;
        text-style: italic;
    }

    SystemMessage {
        padding: 0 0 1 0;
    }

    .system-message {
        text-align: center;
        text-style: italic;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("escape", "disconnect", "Disconnect", show=True),
        Binding("f5", "refresh_names", "Who's online", show=True),
    ]

    def __init__(
        self,
        server_address: Optional[str] = None,
        username: Optional[str] = None,
    ) -> None:
        """
        Initialize the chat application.

        Args:
            server_address: Optional address to pre-fill
            username: Optional name to pre-fill
        """
        super().__init__()
        self.client: Optional[ChatClient] = None
        self.listener = AppListener(self)
        self.default_address = server_address or ""
        self.default_username = username or ""
        self.username: Optional[str] = None
        self.members: List[str] = []
        self._current_screen = "connection"
        self._run_task: Optional[asyncio.Task] = None

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()
        yield ConnectionScreen(id="connection-screen")
        yield ChatScreen(id="chat-screen")
        yield Footer()

    def on_mount(self) -> None:
        """Handle application mount."""
        self.query_one("#username-input", Input).value = self.default_username
        self.query_one(
            "#server-address-input", Input
        ).value = self.default_address
        self._show_screen("connection")

    async def on_unmount(self) -> None:
        """Log out when the application exits."""
        if self.client:
            await self.client.stop()

    def _show_screen(self, screen_name: str) -> None:
        """Show a specific screen and hide the other."""
        screens = {
            "connection": "connection-screen",
            "chat": "chat-screen",
        }

        for name, screen_id in screens.items():
            try:
                screen = self.query_one(f"#{screen_id}")
                screen.display = name == screen_name
            except NoMatches:
                pass

        self._current_screen = screen_name

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        button_id = event.button.id

        if button_id == "connect-btn":
            await self._handle_connect()
        elif button_id == "send-btn":
            await self._handle_send_message()
        elif button_id == "refresh-btn":
            await self._refresh_names()
        elif button_id == "disconnect-btn":
            await self._handle_disconnect()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle input submit events (Enter key)."""
        input_id = event.input.id

        if input_id == "message-input":
            await self._handle_send_message()
        elif input_id in ("username-input", "server-address-input"):
            await self._handle_connect()

    async def _handle_connect(self) -> None:
        """Connect, or propose a new name to a server that asked for one."""
        username_input = self.query_one("#username-input", Input)
        address_input = self.query_one("#server-address-input", Input)
        status = self.query_one("#connection-status", Static)

        username = username_input.value.strip()
        address = address_input.value.strip()

        if not username:
            status.update("[red]Please enter a name[/]")
            return
        if not address:
            status.update("[red]Please enter a server address[/]")
            return

        if self.client and self.client.is_running():
            # The server asked for another name
            if not self.client.is_valid_name(username):
                status.update(
                    "[red]Names may only use letters, digits, '_' and '-'[/]"
                )
                return
            status.update("[yellow]Trying another name...[/]")
            self.client.update_name(username)
            return

        status.update("[yellow]Connecting...[/]")
        self.client = ChatClient(self.listener, address)
        self.client.update_name(username)
        self._run_task = asyncio.create_task(self._run_client(self.client))

    async def _run_client(self, client: ChatClient) -> None:
        """Run the client session and return to the connection screen."""
        try:
            await client.run()
        except Exception as e:
            logger.error("Client session failed: %s", e)
            self.show_client_status(f"Client session failed: {e}", True)
        finally:
            if self.client is client:
                self.username = None
                self.members = []
                self._show_screen("connection")

    async def _handle_disconnect(self) -> None:
        """Log out and go back to the connection screen."""
        if self.client:
            await self.client.stop()
        if self._run_task:
            await self._run_task
            self._run_task = None
        self.client = None

    async def _refresh_names(self) -> None:
        """Ask the server for the member list."""
        if self.client and self.client.is_logged_in:
            await self.client.list_names()

    async def _handle_send_message(self) -> None:
        """Handle the text typed into the message box."""
        if not self.client or not self.client.is_logged_in:
            return

        message_input = self.query_one("#message-input", Input)
        if not message_input.value.strip():
            return

        try:
            command, recipient, body = parse_input(message_input.value)
        except ValueError as e:
            self._add_system_message(str(e), "warning")
            return

        message_input.value = ""
        if command == "all":
            await self.client.message_all(body)
        elif command == "msg":
            await self.client.message_one(recipient, body)
        elif command == "names":
            await self.client.list_names()
        elif command == "quit":
            await self._handle_disconnect()

    def show_client_status(self, text: str, is_error: bool) -> None:
        """Show a status line from the client."""
        markup = f"[red]{escape(text)}[/]" if is_error else escape(text)
        try:
            self.query_one("#connection-status", Static).update(markup)
        except NoMatches:
            pass
        if self._current_screen == "chat":
            self._add_system_message(text, "error" if is_error else "info")

    def show_message_sent(self, message: BaseMessage) -> None:
        """Echo our own chat messages."""
        if isinstance(message, ChatMessage):
            self._add_chat_message(message, is_own=True)

    def show_message_received(self, message: BaseMessage) -> None:
        """React to a message from the server."""
        if isinstance(message, LoginResponseMessage) and message.accepted:
            self.username = self.client.name if self.client else None
            self._show_screen("chat")
            self._add_system_message(HELP_TEXT, "info")
            self.run_worker(
                self._refresh_names(), group="names", exclusive=True
            )
        elif isinstance(message, LoginRequestMessage):
            self._show_screen("connection")
            self.query_one("#connection-status", Static).update(
                "[yellow]That name is not available, please choose another[/]"
            )
        elif isinstance(message, ChatMessage):
            self._add_chat_message(message, is_own=False)
        elif isinstance(message, NameResponseMessage):
            self.members = list(message.names)
            self._update_chat_screen()

    def _update_chat_screen(self) -> None:
        """Update the header and the member list."""
        try:
            header = self.query_one("#chat-header", Static)
            header.update(
                f"[bold]{escape(self.username or '')}[/] "
                f"| Online: {len(self.members)}"
            )

            member_list = self.query_one("#member-list", ListView)
            member_list.clear()
            for member in self.members:
                if member == self.username:
                    display = f"[bold cyan]{escape(member)}[/] (you)"
                else:
                    display = escape(member)
                member_list.append(ListItem(Label(display)))
        except NoMatches:
            pass

    def _add_chat_message(self, message: ChatMessage, is_own: bool) -> None:
        """Add a chat message to the display."""
        try:
            messages = self.query_one(
                "#messages-container", ScrollableContainer
            )
            msg_widget = MessageDisplay(
                sender=message.sender,
                body=message.body,
                recipient=message.recipient,
                is_own_message=is_own,
            )
            if is_own:
                msg_widget.add_class("own-message")
            if message.recipient is not None:
                msg_widget.add_class("private-message")
            messages.mount(msg_widget)
            messages.scroll_end()
        except NoMatches:
            pass

    def _add_system_message(
        self, message: str, message_type: str = "info"
    ) -> None:
        """Add a system message to the display."""
        try:
            messages = self.query_one(
                "#messages-container", ScrollableContainer
            )
            messages.mount(SystemMessage(message, message_type))
            messages.scroll_end()
        except NoMatches:
            pass

    async def action_disconnect(self) -> None:
        """Handle disconnect action."""
        if self._current_screen == "chat":
            await self._handle_disconnect()

    async def action_refresh_names(self) -> None:
        """Handle refresh names action."""
        await self._refresh_names()
