# relaychat/errors.py

"""
Exceptions raised by the relay server.
"""


class ChatError(Exception):
    """Base class for relay errors."""


class HandshakeError(ChatError):
    """The connection did not supply a usable username."""


class UsernameTakenError(HandshakeError):
    def __init__(self, username):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class RegistryClosedError(ChatError):
    """The server is shutting down and accepts no new sessions."""
