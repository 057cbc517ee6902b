"""Session middleware for FastAPI.

This module provides middleware that starts a session for every request,
exposes it to route handlers and commits it once the handler has run.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from sessionstore.errors import SessionNotFoundError
from sessionstore.manager import Manager
from sessionstore.session import Session

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Middleware attaching a provider-backed session to each request.

    This middleware:
    - Starts (or resumes) the session named by the session cookie
    - Stores it on request.state.session and the manager on
      request.state.session_manager
    - Relays any newly issued session cookie onto the handler's response
    - Commits the session after the handler returns

    Provider calls may block on file I/O and run in the threadpool.

    Attributes:
        manager: Manager issuing and persisting sessions
    """

    def __init__(self, app, manager: Manager):
        """Initialize SessionMiddleware.

        Args:
            app: FastAPI application
            manager: Manager issuing and persisting sessions
        """
        super().__init__(app)
        self.manager = manager

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request through the session middleware.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response from handler with the session cookie attached
        """
        # Collects the Set-Cookie header issued by Manager.start
        cookie_sink = Response()
        session = await run_in_threadpool(self.manager.start, request, cookie_sink)

        request.state.session = session
        request.state.session_manager = self.manager

        response = await call_next(request)

        for value in cookie_sink.headers.getlist("set-cookie"):
            response.headers.append("set-cookie", value)

        await self._commit(session)
        return response

    async def _commit(self, session: Session) -> None:
        """Commit a session, tolerating one destroyed by the handler.

        Args:
            session: Session attached to the request
        """
        try:
            await run_in_threadpool(self.manager.commit, session)
        except SessionNotFoundError:
            logger.debug("Session destroyed during request, nothing to commit")
        except Exception as e:
            logger.error(
                "Failed to commit session",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise


def get_session(request: Request) -> Session:
    """Get the session attached by SessionMiddleware.

    Args:
        request: Request with session attached by middleware

    Returns:
        Session for the request

    Raises:
        ValueError: If no session is attached to request
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise ValueError("No session found in request")
    return session


def get_session_manager(request: Request) -> Manager:
    """Get the manager attached by SessionMiddleware.

    Raises:
        ValueError: If SessionMiddleware is not installed
    """
    manager = getattr(request.state, "session_manager", None)
    if manager is None:
        raise ValueError("No session manager found in request")
    return manager
