# relaychat/registry.py

"""
Thread-safe mapping of username -> Session for every registered client.
"""

import threading
from .errors import UsernameTakenError, RegistryClosedError


class Registry:
    def __init__(self):
        self._sessions = {}
        self._lock = threading.Lock()
        self._closed = False

    def add(self, session):
        """ Inserts a session, failing if the name is in use or the registry is sealed."""
        with self._lock:
            if self._closed:
                raise RegistryClosedError("Server is shutting down")
            if session.username in self._sessions:
                raise UsernameTakenError(session.username)
            self._sessions[session.username] = session

    def remove(self, session) -> bool:
        """ Removes the session if it is still the one registered under its name."""
        with self._lock:
            if self._sessions.get(session.username) is session:
                del self._sessions[session.username]
                return True
        return False

    def snapshot(self) -> tuple:
        """ Returns the sessions registered at this instant."""
        with self._lock:
            return tuple(self._sessions.values())

    def usernames(self) -> list:
        with self._lock:
            return sorted(self._sessions)

    def seal(self):
        """ Rejects every later add(). Irreversible."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def __contains__(self, username):
        with self._lock:
            return username in self._sessions
