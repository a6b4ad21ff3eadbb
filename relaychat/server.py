# relaychat/server.py

"""
The relay server: accept loop, per-session read loops and shutdown.
"""

import socket
import threading
import logging
from concurrent.futures import ThreadPoolExecutor
from . import protocol
from .broadcaster import Broadcaster
from .errors import HandshakeError, UsernameTakenError, RegistryClosedError
from .registry import Registry
from .session import Session

# Configure logging
logging.basicConfig(level=logging.INFO, format='[%(asctime)s] %(message)s', datefmt='%H:%M:%S')

DEFAULT_WORKERS = 4


class ChatServer:
    """
    Accepts connections without limit but serves at most `max_workers`
    read loops at once. Extra sessions are registered (they receive
    broadcasts) and wait in the pool's FIFO queue until a worker frees up;
    a long-lived session can hold a worker indefinitely.
    """

    def __init__(self, host='0.0.0.0', port=protocol.DEFAULT_PORT, max_workers=DEFAULT_WORKERS):
        self.host = host
        self.port = port
        self.max_workers = max_workers
        self.registry = Registry()
        # Cancellation token shared with the broadcaster and every read loop
        self.stopping = threading.Event()
        self.broadcaster = Broadcaster(self.registry, self.stopping)
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='session')
        self.server_socket = None
        self.ready = threading.Event()
        self._handshaking = None
        self._shutdown_lock = threading.Lock()

    @property
    def address(self):
        """ The bound (host, port), useful when listening on port 0."""
        if self.server_socket is None:
            return None
        return self.server_socket.getsockname()[:2]

    def start(self) -> bool:
        """ Binds the server socket and runs the accept loop until shutdown.

        Returns False if the socket could not be bound.
        """
        try:
            self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            # Allow reusing the address quickly after server restart
            self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.server_socket.bind((self.host, self.port))
            self.server_socket.listen()
        except OSError as e:
            logging.error(f"Failed to start server on {self.host}:{self.port}: {e}")
            if self.server_socket:
                self.server_socket.close()
            self.pool.shutdown(wait=False)
            return False

        logging.info(f"Server listening on {self.host}:{self.address[1]}")
        logging.info(f"Type '{protocol.QUIT_COMMAND}' to shut down the server.")
        self.ready.set()
        try:
            self._accept_connections()
        finally:
            self.server_socket.close()
        return True

    def _accept_connections(self):
        """ Main loop to accept incoming client connections."""
        while not self.stopping.is_set():
            try:
                client_socket, address = self.server_socket.accept()
            except OSError as e:
                if self.stopping.is_set():
                    logging.info("Server is no longer accepting connections.")
                    break
                logging.error(f"Error accepting connection: {e}")
                continue

            logging.info(f"Accepted connection from {address}")
            self._admit(client_socket, address)

    def _admit(self, client_socket: socket.socket, address):
        """ Runs the handshake, registers the session and queues its read loop."""
        self._handshaking = client_socket
        if self.stopping.is_set():
            self._handshaking = None
            client_socket.close()
            return
        try:
            session = Session(client_socket, address)
        except HandshakeError as e:
            if not self.stopping.is_set():
                logging.warning(f"Dropped connection from {address}: {e}")
            client_socket.close()
            return
        finally:
            self._handshaking = None

        try:
            self.registry.add(session)
        except UsernameTakenError as e:
            logging.warning(f"Rejected {address}: {e}")
            try:
                session.send(protocol.format_system(protocol.taken_notice(session.username)))
            except ConnectionError:
                pass # Client is being dropped anyway
            session.close()
            return
        except RegistryClosedError:
            session.close()
            return

        logging.info(f"{address} identified as '{session.username}'")
        self.broadcaster.broadcast_system(protocol.join_notice(session.username), exclude=session)

        try:
            self.pool.submit(self._serve_session, session)
        except RuntimeError:
            # Pool already shut down
            self.broadcaster.drop(session)

    def _serve_session(self, session: Session):
        """ Read loop for one session, executed on a pooled worker."""
        session.served.set()
        try:
            for line in session.lines():
                if self.stopping.is_set():
                    break
                self.broadcaster.broadcast(session.username, line)
        except (OSError, ValueError) as e:
            # ValueError: the stream was closed under us, already reported
            if session.alive and not (self.stopping.is_set() or session.server_shutdown):
                logging.error(f"Error in communication with '{session.username}': {e}")
        finally:
            self.broadcaster.drop(session)

    def shutdown(self):
        """ Stops the server. Only the first call has any effect."""
        with self._shutdown_lock:
            if self.stopping.is_set():
                return
            # 1. stop accepting and silence departure notices
            self.stopping.set()
            self.registry.seal()

        logging.info("Shutting down server...")
        # 2. tell every client, best-effort
        notified = self.broadcaster.notify_shutdown()
        logging.info(f"Shutdown notice delivered to {notified} client(s).")
        # 3. drop every client, including one still sending its username
        self.broadcaster.disconnect_all()
        pending = self._handshaking
        if pending is not None:
            try:
                pending.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        # 4. release the listening socket; shutdown() wakes a blocked accept()
        if self.server_socket is not None:
            try:
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()
        # 5. drop queued read loops
        self.pool.shutdown(wait=False, cancel_futures=True)
        logging.info("Server has been shut down.")

    def watch_console(self, stream):
        """ Reads operator commands; the quit command shuts the server down."""
        for raw in stream:
            if raw.strip() == protocol.QUIT_COMMAND:
                self.shutdown()
                break
