"""Provider interface for session storage backends."""

from abc import ABC, abstractmethod

from sessionstore.session import Session


class Provider(ABC):
    """Base class for all session storage backends.

    A provider owns a keyspace mapping session id to Session. At most one
    live session exists per id; init overwrites any prior entry.
    """

    @abstractmethod
    def init(self, session: Session) -> None:
        """Register a session as live.

        Args:
            session: Session to store, replacing any entry with the same id
        """

    @abstractmethod
    def read(self, session_id: str) -> Session:
        """Find a live session.

        Args:
            session_id: Session identifier

        Returns:
            The stored Session

        Raises:
            SessionNotFoundError: If the id has no live entry
        """

    @abstractmethod
    def destroy(self, session_id: str) -> None:
        """Remove a live session.

        Args:
            session_id: Session identifier

        Raises:
            SessionNotFoundError: If the id has no live entry
        """

    @abstractmethod
    def commit(self, session_id: str) -> None:
        """Flush a session's current state to durable storage.

        Args:
            session_id: Session identifier
        """

    def cleanup(self) -> int:
        """Remove expired sessions from durable storage.

        Backends without durable storage have nothing to sweep.

        Returns:
            Number of sessions removed
        """
        return 0
