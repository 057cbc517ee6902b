"""Unit tests for the reader/writer lock."""

import threading

from sessionstore.locks import RWLock


class TestRWLock:
    """Tests for RWLock."""

    def test_readers_share(self):
        """Test that two readers can hold the lock together."""
        lock = RWLock()
        inside = threading.Barrier(2, timeout=2.0)
        errors = []

        def reader():
            with lock.read_locked():
                try:
                    inside.wait()
                except threading.BrokenBarrierError as e:
                    errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5.0)

        assert errors == []

    def test_writer_waits_for_reader(self):
        """Test that a writer blocks while a reader holds the lock."""
        lock = RWLock()
        acquired = threading.Event()

        def writer():
            with lock.write_locked():
                acquired.set()

        lock.acquire_read()
        thread = threading.Thread(target=writer)
        thread.start()

        assert not acquired.wait(0.2)
        lock.release_read()
        assert acquired.wait(2.0)
        thread.join(2.0)

    def test_reader_waits_for_writer(self):
        """Test that a reader blocks while a writer holds the lock."""
        lock = RWLock()
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        lock.acquire_write()
        thread = threading.Thread(target=reader)
        thread.start()

        assert not acquired.wait(0.2)
        lock.release_write()
        assert acquired.wait(2.0)
        thread.join(2.0)
