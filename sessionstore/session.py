"""Session entity for the session store.

A session is an opaque identifier, an expiration timestamp and a bag of
values keyed by string. Sessions carry no locking of their own; a session
read from a provider is owned by the request that read it.
"""

import json
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

from sessionstore.errors import SessionDecodeError, SessionEncodeError


class Session:
    """Represents a session state.

    Attributes:
        expires_at: Timezone-aware UTC timestamp after which the session is expired
        values: Mapping of key to arbitrary JSON-representable value
    """

    def __init__(
        self,
        session_id: str,
        expires_at: datetime,
        values: Optional[Dict[str, Any]] = None,
    ):
        """Initialize Session.

        Args:
            session_id: Opaque unique identifier
            expires_at: Absolute expiration timestamp
            values: Initial value bag (defaults to empty)
        """
        self._session_id = session_id
        self.expires_at = expires_at
        self.values: Dict[str, Any] = values if values is not None else {}

    @classmethod
    def new(cls, session_id: str, max_age: int) -> "Session":
        """Create an empty session expiring max_age seconds from now.

        A max_age of zero or less yields an already expired session.

        Args:
            session_id: Opaque unique identifier
            max_age: Session lifetime in seconds

        Returns:
            New Session instance
        """
        return cls(session_id, datetime.now(UTC) + timedelta(seconds=max_age))

    @property
    def session_id(self) -> str:
        return self._session_id

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def is_expired(self) -> bool:
        """Check whether the expiration timestamp has been reached."""
        return datetime.now(UTC) >= self.expires_at

    def ttl(self) -> float:
        """Remaining lifetime in seconds, zero once expired."""
        remaining = (self.expires_at - datetime.now(UTC)).total_seconds()
        return max(remaining, 0.0)

    def to_bytes(self) -> bytes:
        """Encode expiration and values for persistence.

        Returns:
            UTF-8 JSON document

        Raises:
            SessionEncodeError: If a value is not JSON-representable
        """
        payload = {
            "expires_at": self.expires_at.isoformat(),
            "values": self.values,
        }
        try:
            _check_keys(self.values)
            return json.dumps(payload, default=_reject).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SessionEncodeError(
                f"cannot encode session {self._session_id!r}: {e}"
            ) from e

    @classmethod
    def from_bytes(cls, session_id: str, data: bytes) -> "Session":
        """Decode a session previously encoded with to_bytes.

        Args:
            session_id: Identifier to attach to the decoded session
            data: Encoded session bytes

        Returns:
            Session instance

        Raises:
            SessionDecodeError: If the bytes are empty, malformed or incomplete
        """
        if not data:
            raise SessionDecodeError(f"empty session data for {session_id!r}")

        try:
            payload = json.loads(data.decode("utf-8"))
            expires_at = datetime.fromisoformat(payload["expires_at"])
            values = payload["values"]
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise SessionDecodeError(
                f"malformed session data for {session_id!r}: {e}"
            ) from e

        if not isinstance(values, dict):
            raise SessionDecodeError(f"session values for {session_id!r} are not a mapping")
        if expires_at.tzinfo is None:
            raise SessionDecodeError(f"session expiry for {session_id!r} has no timezone")

        return cls(session_id, expires_at, values)

    def __repr__(self) -> str:
        return f"Session(session_id={self._session_id!r}, expires_at={self.expires_at.isoformat()!r})"


def _reject(value: Any) -> Any:
    raise TypeError(f"value of type {type(value).__name__} is not serializable")


def _check_keys(values: Any) -> None:
    """Reject mapping keys that JSON would silently turn into strings.

    Raises:
        TypeError: On a non-str key anywhere in the value bag
    """
    stack = [values]
    seen = set()
    while stack:
        item = stack.pop()
        if isinstance(item, (dict, list, tuple)):
            if id(item) in seen:
                continue
            seen.add(id(item))
        if isinstance(item, dict):
            for key, value in item.items():
                if not isinstance(key, str):
                    raise TypeError(
                        f"key {key!r} of type {type(key).__name__} is not a str"
                    )
                stack.append(value)
        elif isinstance(item, (list, tuple)):
            stack.extend(item)
