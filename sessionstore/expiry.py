"""Cancelable expiry timers keyed by session id.

All timers of a scheduler share one worker thread waiting on a heap of
deadlines. The worker starts with the first pending timer and exits once
none are left.
"""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[str], None]


class ExpiryScheduler:
    """Schedules one-shot callbacks per session id.

    Scheduling a callback for an id replaces the pending one for that id, so
    at most one timer is live per session. Replaced and cancelled entries
    stay in the heap and are skipped when they surface.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        # (deadline, seq, session_id)
        self._heap: List[Tuple[float, int, str]] = []
        # session_id -> (seq, callback) of the live entry
        self._live: Dict[str, Tuple[int, Callback]] = {}
        self._seq = itertools.count()
        self._worker: Optional[threading.Thread] = None

    def schedule(self, session_id: str, delay: float, callback: Callback) -> None:
        """Run callback(session_id) after delay seconds.

        Args:
            session_id: Session the timer belongs to
            delay: Seconds to wait, clamped to zero
            callback: Function receiving the session id
        """
        deadline = time.monotonic() + max(delay, 0.0)
        with self._cond:
            seq = next(self._seq)
            self._live[session_id] = (seq, callback)
            heapq.heappush(self._heap, (deadline, seq, session_id))
            if self._worker is None:
                self._worker = threading.Thread(
                    target=self._run, name="session-expiry", daemon=True
                )
                self._worker.start()
            else:
                self._cond.notify()

    def cancel(self, session_id: str) -> bool:
        """Cancel the pending timer for a session id.

        Returns:
            True if a timer was pending
        """
        with self._cond:
            if self._live.pop(session_id, None) is None:
                return False
            self._cond.notify()
            return True

    def cancel_all(self) -> None:
        with self._cond:
            self._live.clear()
            self._heap.clear()
            self._cond.notify()

    def pending(self) -> int:
        """Number of timers waiting to fire."""
        with self._cond:
            return len(self._live)

    def __contains__(self, session_id: object) -> bool:
        with self._cond:
            return session_id in self._live

    def _run(self) -> None:
        while True:
            due = self._next_due()
            if due is None:
                return
            session_id, callback = due
            logger.debug("Expiry timer fired", extra={"session_id": session_id})
            try:
                callback(session_id)
            except Exception:
                logger.exception(
                    "Expiry callback failed", extra={"session_id": session_id}
                )

    def _next_due(self) -> Optional[Tuple[str, Callback]]:
        """Block until a live timer is due and claim it.

        Returns:
            (session_id, callback), or None once nothing is pending and the
            worker should exit
        """
        with self._cond:
            while True:
                # Drop replaced or cancelled entries
                while self._heap:
                    _, seq, session_id = self._heap[0]
                    entry = self._live.get(session_id)
                    if entry is not None and entry[0] == seq:
                        break
                    heapq.heappop(self._heap)

                if not self._heap:
                    self._worker = None
                    return None

                deadline, _, session_id = self._heap[0]
                remaining = deadline - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue

                heapq.heappop(self._heap)
                _, callback = self._live.pop(session_id)
                return session_id, callback
