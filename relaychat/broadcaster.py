# relaychat/broadcaster.py

"""
Fan-out of chat lines and system notices to every registered session.
"""

import threading
import logging
from . import protocol


class Broadcaster:
    def __init__(self, registry, stopping: threading.Event):
        self.registry = registry
        # Set by the server when shutdown begins
        self.stopping = stopping

    def _deliver(self, recipient, line: str) -> bool:
        """ Sends to one recipient; a failure only affects that recipient."""
        try:
            return recipient.send(line)
        except ConnectionError as e:
            logging.warning(f"{e}. Closing connection.")
            self.drop(recipient)
            return False

    def drop(self, session) -> bool:
        """ Closes a session and unregisters it.

        Whoever removes the session announces its departure, so peers see
        exactly one leave notice. Returns False if it was already gone.
        """
        session.close()
        if not self.registry.remove(session):
            return False
        if not (self.stopping.is_set() or session.server_shutdown):
            logging.info(f"'{session.username}' disconnected.")
            self.broadcast_system(protocol.leave_notice(session.username), exclude=session)
        return True

    def broadcast(self, sender: str, body: str) -> int:
        """ Sends a chat message to everyone, the sender included."""
        delivered = 0
        for recipient in self.registry.snapshot():
            line = protocol.format_chat(sender, body, recipient.username)
            if self._deliver(recipient, line):
                delivered += 1
        return delivered

    def broadcast_system(self, text: str, exclude=None) -> int:
        """ Sends a [SYSTEM] notice to everyone except `exclude`.

        Nothing is sent once shutdown has begun.
        """
        if self.stopping.is_set():
            return 0
        line = protocol.format_system(text)
        delivered = 0
        for recipient in self.registry.snapshot():
            if recipient is exclude:
                continue
            if self._deliver(recipient, line):
                delivered += 1
        return delivered

    def notify_shutdown(self) -> int:
        """ Flags every session as server-closed and sends it the shutdown notice."""
        line = protocol.format_system(protocol.SHUTDOWN_NOTICE)
        delivered = 0
        for recipient in self.registry.snapshot():
            recipient.mark_server_shutdown()
            if self._deliver(recipient, line):
                delivered += 1
        return delivered

    def disconnect_all(self):
        for session in self.registry.snapshot():
            self.drop(session)
