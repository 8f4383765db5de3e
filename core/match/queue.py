from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional

from core.match.models import MatchState


class MatchQueue:
    """
    FIFO of upcoming matches.

    Safe to share between the dispatch loop and a UI thread that enqueues
    bracket results; only the head is ever removed.
    """

    def __init__(self) -> None:
        self._items: Deque[MatchState] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, match: MatchState) -> None:
        if not isinstance(match, MatchState):
            raise TypeError("match must be a MatchState")
        with self._lock:
            self._items.append(match)

    def try_dequeue(self) -> Optional[MatchState]:
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def push_front(self, match: MatchState) -> None:
        """Put a previously dequeued match back at the head."""
        if not isinstance(match, MatchState):
            raise TypeError("match must be a MatchState")
        with self._lock:
            self._items.appendleft(match)

    def snapshot(self) -> List[MatchState]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
