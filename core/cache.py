"""Response cache for relayed GET/HEAD requests."""

import hashlib
import json
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from threading import Lock

from core.request_types import RelayResponse, TargetRequest

CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


def cache_key(url: str, method: str, headers: Mapping[str, str]) -> str:
    """Deterministic key for a request identity.

    Header names are lower-cased and sorted so that the same logical request
    always maps to the same key regardless of insertion order.
    """
    identity = json.dumps(
        [url, method.upper(), sorted((k.lower(), v) for k, v in headers.items())],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(identity.encode("utf-8")).hexdigest()


def key_for(target: TargetRequest) -> str:
    return cache_key(target.url, target.method, target.headers)


def is_cacheable(target: TargetRequest, response: RelayResponse | None = None) -> bool:
    if target.method not in CACHEABLE_METHODS:
        return False
    return response is None or response.status_code < 400


class MemoryCache:
    """In-process TTL cache.

    Entries expire a fixed time after insertion; reads never extend them.
    When ``max_entries`` is set, the oldest insertion is evicted first.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[str, tuple[float, RelayResponse]] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock
        self._lock = Lock()

    def get(self, key: str) -> RelayResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: RelayResponse, ttl: float) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + ttl, value)
            self._purge_expired_head()
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def _purge_expired_head(self) -> None:
        """Drop expired entries from the oldest end, stopping at the first live one.

        Entries further back that expired under a shorter TTL are left for
        ``get`` to discard.
        """
        now = self._clock()
        while self._entries:
            expires_at, _ = next(iter(self._entries.values()))
            if expires_at > now:
                break
            self._entries.popitem(last=False)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]


class NullCache:
    """Cache that never stores anything."""

    def get(self, key: str) -> RelayResponse | None:
        return None

    def set(self, key: str, value: RelayResponse, ttl: float) -> None:
        return None
