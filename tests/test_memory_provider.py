"""Unit tests for the in-memory provider."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from sessionstore.errors import SessionNotFoundError
from sessionstore.providers import MemoryProvider, Provider
from sessionstore.session import Session


class TestMemoryProvider:
    """Tests for MemoryProvider."""

    def test_is_a_provider(self):
        """Test that MemoryProvider satisfies the Provider interface."""
        assert isinstance(MemoryProvider(), Provider)

    def test_init_then_read(self):
        """Test that an initialized session can be read back."""
        provider = MemoryProvider()
        session = Session.new("abc", 60)

        provider.init(session)
        result = provider.read("abc")

        assert result.session_id == "abc"
        assert result.values == {}

    def test_read_returns_live_instance(self):
        """Test that mutations are visible to later reads."""
        provider = MemoryProvider()
        session = Session.new("abc", 60)
        provider.init(session)

        provider.read("abc").set("user", "alice")

        assert provider.read("abc").get("user") == "alice"

    def test_adopt_registers_absent_id(self):
        """Test that adopt stores a session whose id is not live."""
        provider = MemoryProvider()
        session = Session.new("abc", 60)

        assert provider.adopt(session) is session
        assert "abc" in provider

    def test_adopt_keeps_live_instance(self):
        """Test that adopt never replaces a live session."""
        provider = MemoryProvider()
        live = Session.new("abc", 60)
        live.set("user", "alice")
        provider.init(live)

        result = provider.adopt(Session.new("abc", 60))

        assert result is live
        assert provider.read("abc").get("user") == "alice"

    def test_read_missing_raises_not_found(self):
        """Test that reading an unknown id fails."""
        provider = MemoryProvider()

        with pytest.raises(SessionNotFoundError) as exc_info:
            provider.read("missing")

        assert exc_info.value.session_id == "missing"

    def test_init_overwrites_existing_entry(self):
        """Test that re-initializing an id replaces the stored session."""
        provider = MemoryProvider()
        first = Session.new("abc", 60)
        first.set("n", 1)
        provider.init(first)

        provider.init(Session.new("abc", 60))

        assert provider.read("abc").get("n") is None
        assert len(provider) == 1

    def test_destroy_twice(self):
        """Test that the second destroy of an id reports not found."""
        provider = MemoryProvider()
        provider.init(Session.new("abc", 60))

        provider.destroy("abc")

        with pytest.raises(SessionNotFoundError):
            provider.destroy("abc")
        with pytest.raises(SessionNotFoundError):
            provider.read("abc")

    def test_destroy_missing_raises_not_found(self):
        """Test that destroying an unknown id fails."""
        provider = MemoryProvider()

        with pytest.raises(SessionNotFoundError):
            provider.destroy("missing")

    def test_not_found_is_key_error(self):
        """Test that SessionNotFoundError can be caught as KeyError."""
        provider = MemoryProvider()

        with pytest.raises(KeyError):
            provider.read("missing")

    def test_commit_is_noop(self):
        """Test that commit succeeds without touching the keyspace."""
        provider = MemoryProvider()
        provider.init(Session.new("abc", 60))

        assert provider.commit("abc") is None
        assert provider.commit("missing") is None
        assert provider.session_ids() == ["abc"]

    def test_cleanup_sweeps_nothing(self):
        """Test that the memory provider leaves expiry to the manager."""
        provider = MemoryProvider()
        provider.init(Session.new("old", -10))

        assert provider.cleanup() == 0
        assert "old" in provider

    def test_concurrent_init_read_destroy(self):
        """Test that concurrent operations keep the keyspace consistent."""
        provider = MemoryProvider()
        ids = [f"sess-{i}" for i in range(200)]

        def lifecycle(session_id):
            provider.init(Session.new(session_id, 60))
            assert provider.read(session_id).session_id == session_id
            provider.destroy(session_id)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lifecycle, ids))

        assert len(provider) == 0
