import threading
from typing import Set


class SeenUrls:
    """
    Tracks review URLs already handled during the engine's lifetime.

    Survives across crawl runs and is only cleared by a full refresh. It is a
    fast-path cache in front of the store's existence check, so losing it on
    restart is harmless. Safe to share between the crawl worker and readers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seen: Set[str] = set()

    def add(self, url: str) -> bool:
        """Mark a URL as seen. Returns False if it was already present."""
        with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)
            return True

    def contains(self, url: str) -> bool:
        with self._lock:
            return url in self._seen

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __contains__(self, url: str) -> bool:
        return self.contains(url)

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
