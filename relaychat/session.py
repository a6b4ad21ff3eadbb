# relaychat/session.py

"""
Server-side state for a single connected client.
"""

import socket
import threading
import logging
from . import protocol
from .errors import HandshakeError


class Session:
    def __init__(self, sock: socket.socket, address=None):
        """ Wraps the socket and reads the username line (the handshake)."""
        self.sock = sock
        self.address = address
        self.reader, self.writer = protocol.open_streams(sock)
        self.server_shutdown = False
        # Set once a pooled worker starts serving this session
        self.served = threading.Event()
        self._send_lock = threading.Lock()
        self._close_lock = threading.Lock()
        self._closed = False

        try:
            raw = self.reader.readline()
        except (OSError, ValueError) as e:
            self.close()
            raise HandshakeError(f"I/O error during handshake: {e}") from e

        if not raw:
            self.close()
            raise HandshakeError("Connection closed before a username was sent")

        username = raw.strip()
        if not username:
            self.close()
            raise HandshakeError("Invalid username received")
        self.username = username

    def __repr__(self):
        return f"<Session {getattr(self, 'username', '?')!r} from {self.address}>"

    @property
    def alive(self) -> bool:
        return not self._closed and self.sock.fileno() != -1

    def send(self, line: str) -> bool:
        """ Writes one line to the client.

        Returns False if the session is already closed. Raises
        ConnectionError if the write fails.
        """
        with self._send_lock:
            if not self.alive:
                return False
            try:
                self.writer.write(line + '\n')
                self.writer.flush()
            except (OSError, ValueError) as e:
                raise ConnectionError(f"Failed to send to {self.username}: {e}") from e
        return True

    def lines(self):
        """ Yields inbound lines until end of stream."""
        for raw in self.reader:
            yield protocol.strip_line(raw)

    def mark_server_shutdown(self):
        self.server_shutdown = True

    def close(self):
        """ Releases the streams and the socket. Safe to call more than once."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        # Unblocks a read pending in the worker thread
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        for stream in (self.writer, self.reader):
            try:
                stream.close()
            except (OSError, ValueError):
                pass # Peer already gone; nothing left to flush
        try:
            self.sock.close()
        except OSError as e:
            logging.warning(f"Error closing socket for {self.address}: {e}")
