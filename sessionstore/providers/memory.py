"""In-memory session provider.

Sessions live in a dict for the lifetime of the process. Expiration is not
swept here; the Manager schedules destruction of expired sessions.
"""

import logging
from typing import Dict, List

from sessionstore.errors import SessionNotFoundError
from sessionstore.locks import RWLock
from sessionstore.providers.base import Provider
from sessionstore.session import Session

logger = logging.getLogger(__name__)


class MemoryProvider(Provider):
    """Session provider backed by a process-local dict.

    Reads share the lock with each other and exclude init/destroy.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = RWLock()

    def init(self, session: Session) -> None:
        with self._lock.write_locked():
            self._sessions[session.session_id] = session

    def adopt(self, session: Session) -> Session:
        """Register a session unless its id is already live.

        Returns:
            The live session for the id, which is the argument only if
            the id was absent
        """
        with self._lock.write_locked():
            return self._sessions.setdefault(session.session_id, session)

    def read(self, session_id: str) -> Session:
        with self._lock.read_locked():
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def destroy(self, session_id: str) -> None:
        with self._lock.write_locked():
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            del self._sessions[session_id]
        logger.debug("Destroyed session", extra={"session_id": session_id})

    def commit(self, session_id: str) -> None:
        """Nothing to flush, values already live in process memory."""
        return None

    def session_ids(self) -> List[str]:
        """Snapshot of the live session ids."""
        with self._lock.read_locked():
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock.read_locked():
            return session_id in self._sessions
