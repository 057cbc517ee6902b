"""Session manager binding cookies to provider-backed sessions.

This module provides the Manager, which discovers the session named by a
request cookie, issues new sessions with fresh random identifiers when the
cookie is missing, malformed, stale or expired, and schedules automatic
destruction when a session's lifetime runs out.
"""

import logging
import re
import secrets
from typing import Any, Optional
from urllib.parse import quote_plus, unquote_plus

from sessionstore.config import SessionOptions
from sessionstore.errors import SessionError
from sessionstore.expiry import ExpiryScheduler
from sessionstore.providers.base import Provider
from sessionstore.registry import Registry
from sessionstore.session import Session

logger = logging.getLogger(__name__)

# A '%' not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class Manager:
    """Manages session lifecycle on top of a provider.

    This class handles:
    - Generating unguessable session IDs
    - Binding session IDs to HTTP-only cookies
    - Recovering from missing, malformed and stale cookies by issuing new sessions
    - Destroying sessions automatically once they expire

    Attributes:
        provider: Storage backend holding the sessions
        options: Cookie and lifetime options
    """

    def __init__(self, provider: Provider, options: Optional[SessionOptions] = None):
        """Initialize Manager.

        Args:
            provider: Storage backend holding the sessions
            options: Cookie and lifetime options (defaults to SessionOptions())
        """
        self.provider = provider
        self.options = options or SessionOptions()
        self._expiry = ExpiryScheduler()

    @classmethod
    def from_registry(
        cls,
        registry: Registry,
        provider_name: str,
        options: Optional[SessionOptions] = None,
    ) -> "Manager":
        """Create a Manager for a registered provider.

        Raises:
            UnknownProviderError: If provider_name is not registered
        """
        return cls(registry.get(provider_name), options)

    def generate_session_id(self) -> str:
        """Generate a new session ID.

        Returns:
            Hex string of options.id_length random bytes
        """
        return secrets.token_hex(self.options.id_length)

    def start(self, request: Any, response: Any) -> Session:
        """Find the session named by the request cookie, or issue a new one.

        Missing, unescapable, unknown and expired session cookies are all
        answered with a new session and a fresh cookie on the response.

        Args:
            request: Object exposing a ``cookies`` mapping
            response: Object exposing ``set_cookie``

        Returns:
            The live or newly created Session

        Raises:
            SessionEncodeError: If the provider fails to persist a new session
            OSError: If the provider's storage fails while persisting
        """
        cookie_value = request.cookies.get(self.options.cookie_name)
        if not cookie_value:
            return self._new_session(response)

        try:
            session_id = _unescape(cookie_value)
        except ValueError:
            logger.debug("Ignoring malformed session cookie")
            return self._new_session(response)

        try:
            session = self.provider.read(session_id)
        except (SessionError, OSError) as e:
            logger.debug(
                "Session cookie did not resolve, issuing new session",
                extra={"error": str(e)},
            )
            return self._new_session(response)

        if session.is_expired():
            try:
                self.destroy(session)
            except (SessionError, OSError) as e:
                logger.warning(
                    "Failed to destroy expired session",
                    extra={"session_id": session_id, "error": str(e)},
                )
            return self._new_session(response)

        self._schedule_expiry(session_id, session.ttl())
        return session

    def destroy(self, session: Session) -> None:
        """Remove a session from the provider.

        Raises:
            SessionNotFoundError: If the session is already gone
        """
        self._expiry.cancel(session.session_id)
        self.provider.destroy(session.session_id)

    def commit(self, session: Session) -> None:
        """Persist a session through the provider.

        Raises:
            SessionNotFoundError: If the session is not live
            SessionEncodeError: If a value cannot be serialized
        """
        self.provider.commit(session.session_id)

    def close(self) -> None:
        """Cancel every pending expiry timer."""
        self._expiry.cancel_all()

    def _new_session(self, response: Any) -> Session:
        """Create, register and cookie a new session.

        Args:
            response: Object exposing ``set_cookie``

        Returns:
            Newly created Session
        """
        session_id = self.generate_session_id()
        session = Session.new(session_id, self.options.max_age)
        self.provider.init(session)
        self._schedule_expiry(session_id, self.options.max_age)
        self._set_session_cookie(response, session)
        logger.debug("Issued new session")
        return session

    def _schedule_expiry(self, session_id: str, delay: float) -> None:
        self._expiry.schedule(session_id, delay, self._expire)

    def _expire(self, session_id: str) -> None:
        # Racing an explicit destroy is expected
        try:
            self.provider.destroy(session_id)
        except (SessionError, OSError) as e:
            logger.debug(
                "Expiry destroy discarded",
                extra={"session_id": session_id, "error": str(e)},
            )

    def _set_session_cookie(self, response: Any, session: Session) -> None:
        """Set session cookie on response.

        Args:
            response: Object exposing ``set_cookie``
            session: Session whose id the cookie carries
        """
        response.set_cookie(
            key=self.options.cookie_name,
            value=quote_plus(session.session_id),
            max_age=self.options.max_age,
            path=self.options.path,
            secure=self.options.secure,
            httponly=True,
            samesite=self.options.same_site,
        )


def _unescape(value: str) -> str:
    """Strictly decode a query-escaped cookie value.

    Raises:
        ValueError: On a truncated or non-hex escape, or invalid UTF-8
    """
    if _BAD_ESCAPE.search(value):
        raise ValueError(f"invalid escape in cookie value {value!r}")
    return unquote_plus(value, errors="strict")
