"""Unit tests for the session middleware."""

from types import SimpleNamespace

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from sessionstore.config import SessionOptions
from sessionstore.manager import Manager
from sessionstore.middleware import SessionMiddleware, get_session, get_session_manager
from sessionstore.providers import FileProvider, MemoryProvider
from sessionstore.session import Session


def make_app(manager: Manager) -> FastAPI:
    """Build an app exercising the session from route handlers."""
    app = FastAPI()
    app.add_middleware(SessionMiddleware, manager=manager)

    @app.get("/count")
    async def count(session: Session = Depends(get_session)):
        session.set("count", session.get("count", 0) + 1)
        return {"count": session.get("count"), "session_id": session.session_id}

    @app.post("/logout")
    async def logout(request: Request):
        get_session_manager(request).destroy(get_session(request))
        return {"status": "logged out"}

    @app.get("/leak")
    async def leak(session: Session = Depends(get_session)):
        session.set("handle", object())
        return {"status": "ok"}

    return app


@pytest.fixture
def file_manager(tmp_path):
    manager = Manager(FileProvider(tmp_path, prefix="sess-"), SessionOptions(cookie_name="sid"))
    yield manager
    manager.close()


class TestSessionMiddleware:
    """Tests for SessionMiddleware."""

    def test_sets_session_cookie(self):
        """Test that the first response carries the session cookie."""
        manager = Manager(MemoryProvider(), SessionOptions(cookie_name="sid", max_age=600))
        client = TestClient(make_app(manager))

        response = client.get("/count")

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"sid={response.json()['session_id']}")
        assert "HttpOnly" in set_cookie
        assert "Max-Age=600" in set_cookie
        manager.close()

    def test_session_survives_requests(self, file_manager):
        """Test that values set by a handler are committed and resumed."""
        client = TestClient(make_app(file_manager))

        first = client.get("/count").json()
        second = client.get("/count").json()

        assert second["session_id"] == first["session_id"]
        assert second["count"] == 2

    def test_resumed_session_sets_no_cookie(self, file_manager):
        """Test that a resumed session does not reissue the cookie."""
        client = TestClient(make_app(file_manager))
        client.get("/count")

        response = client.get("/count")

        assert "set-cookie" not in response.headers

    def test_commit_writes_file(self, file_manager, tmp_path):
        """Test that the committed state is on disk after the response."""
        client = TestClient(make_app(file_manager))

        session_id = client.get("/count").json()["session_id"]

        stored = FileProvider(tmp_path, prefix="sess-").read(session_id)
        assert stored.get("count") == 1

    def test_logout_then_new_session(self, file_manager, tmp_path):
        """Test that a destroyed session is replaced on the next request."""
        client = TestClient(make_app(file_manager))
        first = client.get("/count").json()

        response = client.post("/logout")
        after = client.get("/count").json()

        assert response.status_code == 200
        assert not (tmp_path / f"sess-{first['session_id']}").exists()
        assert after["session_id"] != first["session_id"]
        assert after["count"] == 1

    def test_stale_cookie_is_replaced(self, file_manager):
        """Test that a forged cookie yields a fresh session without error."""
        client = TestClient(make_app(file_manager))

        response = client.get("/count", headers={"Cookie": "sid=forged"})

        assert response.status_code == 200
        assert response.json()["session_id"] != "forged"

    def test_commit_failure_propagates(self, file_manager):
        """Test that an unencodable value fails the request."""
        client = TestClient(make_app(file_manager))

        with pytest.raises(TypeError):
            client.get("/leak")


class TestRequestHelpers:
    """Tests for get_session and get_session_manager."""

    def test_get_session_without_middleware(self):
        """Test that a request without session raises ValueError."""
        request = SimpleNamespace(state=SimpleNamespace())

        with pytest.raises(ValueError):
            get_session(request)

    def test_get_session_manager_without_middleware(self):
        """Test that a request without manager raises ValueError."""
        request = SimpleNamespace(state=SimpleNamespace())

        with pytest.raises(ValueError):
            get_session_manager(request)
