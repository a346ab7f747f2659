"""
Chat Error Taxonomy

Exceptions raised by the channel, the client session and the server router.
Each carries an ``error_code`` that the server reuses when it reports the
failure back to a client in an ErrorMessage.
"""


class ChatError(RuntimeError):
    """Base class for all chat protocol errors."""

    error_code = "CHAT_ERROR"


class ConnectionFailed(ChatError):
    """Raised when the underlying connection fails or is closed."""

    error_code = "CONNECTION_FAILED"


class ProtocolViolation(ChatError):
    """Raised when a frame is malformed or arrives in the wrong state."""

    error_code = "PROTOCOL_VIOLATION"


class NameRejected(ChatError):
    """Raised when a proposed login name is invalid or already taken."""

    error_code = "NAME_REJECTED"


class RoutingFailure(ChatError):
    """Raised when a private message cannot be delivered to its recipient."""

    error_code = "ROUTING_FAILURE"
