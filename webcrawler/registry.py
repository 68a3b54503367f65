"""
registry.py - Session Directory and Store Lock

Process-wide directory of connected sessions, plus the single lock that
serializes writes to the store.

Key role: Lets one client quiesce every other client's crawl on a
database before a destructive operation (init, drop) touches it
"""

from contextlib import contextmanager
from threading import RLock

from utils import get_logger


class DatabaseLock(object):
    """
    Process-wide mutual exclusion around the store.

    Re-entrant, so a holder may call helpers that take it again.
    """

    def __init__(self):
        self._lock = RLock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._lock.release()
        return False

    def run(self, fn, *args, **kwargs):
        with self:
            return fn(*args, **kwargs)


class SessionRegistry(object):
    """Live sessions, observed but not owned."""

    def __init__(self):
        self.logger = get_logger("REGISTRY")
        self.database_lock = DatabaseLock()
        self._sessions = []
        self._lock = RLock()  # Protects _sessions

    def register(self, session):
        with self._lock:
            self._sessions.append(session)

    def unregister(self, session):
        with self._lock:
            if session in self._sessions:
                self._sessions.remove(session)

    def sessions(self):
        with self._lock:
            return list(self._sessions)

    def stop_database(self, database):
        """
        Quiesce every session bound to database, one at a time.

        Holds the membership lock throughout, so no session can leave
        mid-quiesce. When this returns, no session bound to database has
        a running worker.

        Returns:
            Number of sessions that were asked to stop
        """
        stopped = 0
        with self._lock:
            for session in self._sessions:
                if session.current_database == database:
                    session.stop()
                    stopped += 1
        if stopped:
            self.logger.info(
                f"Quiesced {stopped} session(s) on database {database}.")
        return stopped

    @contextmanager
    def exclusive_store(self):
        with self.database_lock:
            yield

    def with_exclusive_store(self, fn, *args, **kwargs):
        return self.database_lock.run(fn, *args, **kwargs)
