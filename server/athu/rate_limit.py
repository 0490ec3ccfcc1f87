# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter — per-client fixed-window counter
# ─────────────────────────────────────────────────────────────────────────────
# 20 attempts per 60s window per client key. Denied attempts still count.
# A window starts at the client's first request and resets on the first
# request more than WINDOW_SECONDS after that.
#
# The client table is a plain dict and is never swept: one entry per key
# for the life of the process. Pass max_clients to cap it with LRU
# eviction (an evicted client simply starts a fresh window).
#
# State is per process. Several instances behind a load balancer each
# count on their own.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass

from cachetools import LRUCache  # type: ignore[import-untyped]
from starlette.requests import Request

WINDOW_SECONDS = 60.0
MAX_REQUESTS_PER_WINDOW = 20

# Set by Cloudflare to the address of the connecting client.
CLIENT_IP_HEADER = "cf-connecting-ip"
UNKNOWN_CLIENT = "unknown"


@dataclass
class ClientWindow:
    """Request count for one client since window_start."""

    client_key: str
    count: int
    window_start: float


class FixedWindowRateLimiter:
    """Thread-safe fixed-window admission per client key."""

    def __init__(
        self,
        limit: int = MAX_REQUESTS_PER_WINDOW,
        window_seconds: float = WINDOW_SECONDS,
        max_clients: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: MutableMapping[str, ClientWindow] = (
            LRUCache(maxsize=max_clients) if max_clients else {}
        )

    def admit(self, client_key: str) -> bool:
        """Count one attempt for client_key. False once it exceeds the limit."""
        with self._lock:
            now = self._clock()
            entry = self._windows.get(client_key)
            if entry is None:
                entry = ClientWindow(client_key=client_key, count=0, window_start=now)
            if now - entry.window_start > self.window_seconds:
                entry.count = 0
                entry.window_start = now
            entry.count += 1
            # Re-store on every hit so an LRU-bounded table sees the access.
            self._windows[client_key] = entry
            return entry.count <= self.limit

    def retry_after(self, client_key: str) -> float:
        """Seconds until client_key's current window resets."""
        with self._lock:
            entry = self._windows.get(client_key)
            if entry is None:
                return 0.0
            elapsed = self._clock() - entry.window_start
            return max(0.0, self.window_seconds - elapsed)

    def window(self, client_key: str) -> ClientWindow | None:
        """Snapshot of a client's window, or None if never seen (or evicted)."""
        with self._lock:
            entry = self._windows.get(client_key)
            if entry is None:
                return None
            return ClientWindow(entry.client_key, entry.count, entry.window_start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def client_key_for(request: Request) -> str:
    """Rate-limit key: the platform's connecting-IP header, else 'unknown'.

    Every request without the header shares the 'unknown' bucket.
    """
    return request.headers.get(CLIENT_IP_HEADER) or UNKNOWN_CLIENT
