"""Exception types raised by the session store.

Storage-layer errors derive from SessionError and always propagate to the
caller of a provider operation. Registry errors are configuration-time
mistakes reported when providers are registered or looked up.
"""

from typing import Optional


class SessionError(Exception):
    """Base class for session storage errors."""
    pass


class SessionNotFoundError(SessionError, KeyError):
    """Raised when a session id has no live entry in a provider."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"session not found: {session_id!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return self.args[0]


class SessionDecodeError(SessionError, ValueError):
    """Raised when persisted bytes do not represent a valid session."""
    pass


class SessionEncodeError(SessionError, TypeError):
    """Raised when a session value cannot be serialized."""
    pass


class InvalidSessionIdError(SessionError, ValueError):
    """Raised when a session id cannot be mapped to a storage key."""

    def __init__(self, session_id: str, reason: Optional[str] = None):
        self.session_id = session_id
        message = f"invalid session id: {session_id!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RegistryError(Exception):
    """Base class for provider registration errors."""
    pass


class InvalidProviderError(RegistryError):
    """Raised when None is registered as a provider."""
    pass


class DuplicateProviderError(RegistryError):
    """Raised when a provider name is registered twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"provider already registered: {name!r}")


class UnknownProviderError(RegistryError):
    """Raised when a provider name has not been registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown provider: {name!r}")
